import pytest

from lorawan_gateway.filter import DevAddrFilter, Eui, EuiFilter, xxh64

EMPTY_BIN = bytes([
    193, 92, 2, 137, 236, 45, 10, 145, 10, 0, 0, 0, 0, 0, 0, 0, 0, 0, 236, 22, 0, 0, 0,
    0, 208, 1, 236, 22, 0, 0, 0, 0, 72, 188, 41, 4, 0, 112, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 1, 0, 0, 0, 168, 9, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 24, 236, 22, 0, 0, 0, 0, 1,
    104, 2, 0,
])

SOME_KEYS = [
    (9741577031045377197, 5631624589620531025),
    (4053769789384140926, 261708585656931929),
    (15656485083446225282, 12944688400506628191),
    (2532554414978603187, 5068956979456058210),
    (11707572432716655343, 10251566706728408737),
    (12724588641898500322, 14687969799823696951),
    (1227240127989838526, 4588270702326584272),
    (12607244973879047991, 18360762251427518680),
    (5730053784552344574, 3255002245038872702),
    (6587241094142920615, 11809313843902847396),
]

SOME_FILTER_BIN = bytes([
    193, 92, 2, 137, 236, 45, 10, 145, 14, 0, 0, 0, 0, 0, 0, 0, 0, 0, 13, 213, 0, 0, 0,
    0, 108, 233, 188, 116, 235, 155, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 209, 30, 98, 48, 112, 96, 0, 0, 0, 0, 0, 0, 69, 125, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 0, 0, 223, 21, 0, 0, 198, 225, 145, 206, 0, 0, 99, 63, 0, 0, 217, 218, 224, 20,
    0, 0, 0, 0, 0, 0, 0, 0,
])


def test_devaddr_from_bin_1():
    filt = DevAddrFilter.from_bin(bytes([0, 2, 0, 127, 255, 0]))
    assert filt.base == 1024
    assert filt.size == 1024
    assert filt.contains(1024)


def test_devaddr_from_bin_2():
    filt = DevAddrFilter.from_bin(bytes([0, 4, 4, 127, 255, 254]))
    assert filt.base == 2056
    assert filt.size == 8
    assert filt.contains(2063)


def test_devaddr_range_bounds():
    filt = DevAddrFilter.from_bin(bytes([0, 4, 4, 127, 255, 254]))
    assert not filt.contains(filt.base - 1)
    assert not filt.contains(filt.base + filt.size)


def test_devaddr_wrong_length():
    with pytest.raises(ValueError):
        DevAddrFilter.from_bin(bytes([0, 1, 2]))


def test_empty_filter():
    filt = EuiFilter.from_bin(EMPTY_BIN)
    assert filt.block_length == 10
    assert not filt.contains(Eui(deveui=0, appeui=0))


def test_some_filter():
    filt = EuiFilter.from_bin(SOME_FILTER_BIN)
    assert not filt.contains(Eui(deveui=0, appeui=0))
    for deveui, appeui in SOME_KEYS:
        assert filt.contains(Eui(deveui=deveui, appeui=appeui))


def test_eui_filter_truncated():
    with pytest.raises(ValueError):
        EuiFilter.from_bin(SOME_FILTER_BIN[:40])


def test_xxh64_empty_input():
    assert xxh64(b"", 0) == 0xEF46DB3751D8E999


def test_xxh64_long_input_is_deterministic_and_seeded():
    data = bytes(range(100))
    assert xxh64(data, 0) == xxh64(data, 0)
    assert xxh64(data, 0) != xxh64(data, 1)
    assert 0 <= xxh64(data, 0) < 2**64