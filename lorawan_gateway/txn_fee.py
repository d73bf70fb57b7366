"""Transaction and staking fee configuration from chain variables."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from lorawan_gateway.settings import StakingMode

TXN_FEE_SIGNATURE_SIZE = 64
TXN_FEE_MULTIPLIER = 5000
CONFIG_FEE_KEYS = (
    "txn_fees",
    "txn_fee_multiplier",
    "staking_fee_txn_add_gateway_v1",
    "staking_fee_txn_add_light_gateway_v1",
    "staking_fee_txn_add_dataonly_gateway_v1",
)

_U64_MAX = 0xFFFFFFFFFFFFFFFF
_UINT_RE = re.compile(r"\+?[0-9]+")


class TxnFeeError(ValueError):
    """Raised when a chain variable has the wrong type or value."""


@dataclass(frozen=True)
class ConfigValue:
    """A named, typed chain variable with its raw value."""

    name: str
    type: str
    value: bytes

    def _text(self, message: str) -> str:
        try:
            return bytes(self.value).decode("utf-8")
        except UnicodeDecodeError:
            raise TxnFeeError(f"{message}: {self.name}") from None

    def to_bool(self) -> bool:
        """Interpret an ``atom`` variable as a boolean."""
        if self.type != "atom":
            raise TxnFeeError(f"not a boolean variable: {self.name}")
        return self._text("not a boolean value") == "true"

    def to_int(self) -> int:
        """Interpret an ``int`` variable as an unsigned 64-bit integer."""
        if self.type != "int":
            raise TxnFeeError(f"not an int variable: {self.name}")
        text = self._text("not an valid value")
        if not _UINT_RE.fullmatch(text):
            raise TxnFeeError(f"not a valid int value: {self.name}")
        value = int(text)
        if value > _U64_MAX:
            raise TxnFeeError(f"not a valid int value: {self.name}")
        return value


@dataclass
class TxnFeeConfig:
    """Whether fees apply, the fee multiplier and the staking fees in DC."""

    txn_fees: bool = True
    txn_fee_multiplier: int = TXN_FEE_MULTIPLIER
    staking_fee_txn_add_gateway_v1: int = 4000000
    staking_fee_txn_add_light_gateway_v1: int = 4000000
    staking_fee_txn_add_dataonly_gateway_v1: int = 1000000

    @classmethod
    def from_values(cls, values: Iterable[ConfigValue]) -> TxnFeeConfig:
        """Start from the defaults and apply every known variable."""
        result = cls()
        for var in values:
            if var.name == "txn_fees":
                result.txn_fees = var.to_bool()
            elif var.name in CONFIG_FEE_KEYS:
                setattr(result, var.name, var.to_int())
        return result

    def get_staking_fee(self, staking_mode: StakingMode) -> int:
        """The staking fee for adding a gateway in the given mode."""
        if staking_mode is StakingMode.FULL:
            return self.staking_fee_txn_add_gateway_v1
        if staking_mode is StakingMode.DATA_ONLY:
            return self.staking_fee_txn_add_dataonly_gateway_v1
        return self.staking_fee_txn_add_light_gateway_v1

    def get_txn_fee(self, payload_size: int) -> int:
        """The fee for a transaction of the given encoded size."""
        dc_payload_size = 24 if self.txn_fees else 1
        if payload_size <= dc_payload_size:
            fee = 1
        else:
            fee = -(-payload_size // dc_payload_size)
        return fee * self.txn_fee_multiplier