"""Address lookup table instructions.

Instruction data is bincode: a u32 little-endian discriminator followed by
the variant fields.
"""

import struct
from collections.abc import Sequence

from solders.instruction import AccountMeta, Instruction  # type: ignore
from solders.pubkey import Pubkey  # type: ignore

from ..constants import ADDRESS_LOOKUP_TABLE_PROGRAM_ID, SYSTEM_PROGRAM_ID

LOOKUP_TABLE_PROGRAM = Pubkey.from_string(ADDRESS_LOOKUP_TABLE_PROGRAM_ID)
SYSTEM_PROGRAM = Pubkey.from_string(SYSTEM_PROGRAM_ID)

_IX_CREATE_LOOKUP_TABLE = 0
_IX_EXTEND_LOOKUP_TABLE = 2


def derive_lookup_table_address(authority: Pubkey, recent_slot: int) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [bytes(authority), recent_slot.to_bytes(8, "little")],
        LOOKUP_TABLE_PROGRAM,
    )


def create_lookup_table(
    authority: Pubkey, payer: Pubkey, recent_slot: int
) -> tuple[Instruction, Pubkey]:
    """Build a CreateLookupTable instruction.

    Returns:
        The instruction and the derived lookup table address.
    """
    table, bump = derive_lookup_table_address(authority, recent_slot)
    data = struct.pack("<IQB", _IX_CREATE_LOOKUP_TABLE, recent_slot, bump)
    accounts = [
        AccountMeta(table, False, True),
        AccountMeta(authority, True, False),
        AccountMeta(payer, True, True),
        AccountMeta(SYSTEM_PROGRAM, False, False),
    ]
    return Instruction(LOOKUP_TABLE_PROGRAM, data, accounts), table


def extend_lookup_table(
    table: Pubkey, authority: Pubkey, payer: Pubkey, addresses: Sequence[Pubkey]
) -> Instruction:
    if not addresses:
        raise ValueError("Cannot extend a lookup table with no addresses")
    data = struct.pack("<IQ", _IX_EXTEND_LOOKUP_TABLE, len(addresses))
    data += b"".join(bytes(a) for a in addresses)
    accounts = [
        AccountMeta(table, False, True),
        AccountMeta(authority, True, False),
        AccountMeta(payer, True, True),
        AccountMeta(SYSTEM_PROGRAM, False, False),
    ]
    return Instruction(LOOKUP_TABLE_PROGRAM, data, accounts)
