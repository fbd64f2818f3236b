from enum import Enum


class CallType(str, Enum):
    CALL = "CALL"
    STATICCALL = "STATICCALL"
    DELEGATECALL = "DELEGATECALL"
    CALLCODE = "CALLCODE"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"
    SELFDESTRUCT = "SELFDESTRUCT"

    @classmethod
    def from_opcode(cls, opcode: int) -> "CallType":
        try:
            return _OPCODES[opcode]
        except KeyError:
            raise ValueError(f"Opcode {opcode:#04x} does not open a call scope") from None

    @property
    def is_create(self) -> bool:
        return self in (CallType.CREATE, CallType.CREATE2)


_OPCODES = {
    0xF0: CallType.CREATE,
    0xF1: CallType.CALL,
    0xF2: CallType.CALLCODE,
    0xF4: CallType.DELEGATECALL,
    0xF5: CallType.CREATE2,
    0xFA: CallType.STATICCALL,
    0xFF: CallType.SELFDESTRUCT,
}
