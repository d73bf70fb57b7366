import pytest

from lorawan_gateway.packet import Packet, PacketError, Rx2Window


def make_packet(**kwargs):
    defaults = dict(
        payload=b"\x40\x01\x02",
        timestamp=1000,
        frequency=904.3,
        datarate="SF7BW125",
        snr=5.5,
        signal_strength=-80.0,
    )
    defaults.update(kwargs)
    return Packet(**defaults)


def test_hash_empty_payload():
    assert make_packet(payload=b"").hash().hex() == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_hash_differs_by_payload():
    assert make_packet(payload=b"a").hash() != make_packet(payload=b"b").hash()
    assert len(make_packet().hash()) == 32


@pytest.mark.parametrize("size", [0, 1, 24])
def test_dc_payload_small(size):
    assert make_packet(payload=bytes(size)).dc_payload() == 1


def test_dc_payload_grows_per_block():
    assert make_packet(payload=bytes(25)).dc_payload() == 2
    assert make_packet(payload=bytes(48)).dc_payload() == make_packet(payload=bytes(25)).dc_payload()
    assert make_packet(payload=bytes(49)).dc_payload() > make_packet(payload=bytes(48)).dc_payload()


def test_is_potential_beacon():
    assert make_packet(payload=b"\xe0\x01").is_potential_beacon()
    assert not make_packet(payload=b"\x40\x01").is_potential_beacon()
    assert not make_packet(payload=b"").is_potential_beacon()


def test_to_pull_resp_rx1():
    tx = make_packet().to_pull_resp(False, 27)
    assert tx.tmst == 1000
    assert tx.freq == pytest.approx(904.3)
    assert tx.datr == "SF7BW125"
    assert tx.powe == 27
    assert tx.data == b"\x40\x01\x02"
    assert tx.ipol is True
    assert tx.imme is False
    assert tx.rfch == 0
    assert tx.modu == "LORA"


def test_to_pull_resp_rx2_missing():
    assert make_packet().to_pull_resp(True, 27) is None


def test_to_pull_resp_rx2_window():
    window = Rx2Window(timestamp=2000, frequency=923.3, datarate="SF12BW500")
    tx = make_packet(rx2_window=window).to_pull_resp(True, 20)
    assert tx.tmst == 2000
    assert tx.freq == pytest.approx(923.3)
    assert tx.datr == "SF12BW500"
    assert tx.powe == 20


def test_to_pull_resp_invalid_datarate():
    with pytest.raises(PacketError):
        make_packet(datarate="bogus").to_pull_resp(False, 27)


def test_str():
    text = str(make_packet())
    assert text.startswith("@1000 us, 904.30 MHz, SF7BW125")
    assert text.endswith("len: 3")