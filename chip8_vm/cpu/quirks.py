"""
CHIP-8 VM — Platform Variants ("quirks")

Historical CHIP-8 interpreters disagree on a handful of opcodes. Rather
than guessing, the interpreter takes an explicit Quirks value at
construction time. Named presets:

  chip8       — shifts read VY, BNNN adds V0, sprite columns wrap at the
                right edge while rows clip at the bottom, logic ops leave
                VF alone, FX55/FX65 leave I alone.
  cosmac-vip  — the original 1977 interpreter: shifts read VY, sprites
                clip on both axes, 8XY1/2/3 reset VF, FX55/FX65 advance I.
  chip48      — HP-48 lineage (also SUPER-CHIP): shifts read VX in place,
                BXNN adds VX, sprites clip.
"""

from dataclasses import dataclass
from typing import Dict, Union

from ..errors import UnknownPlatform


@dataclass(frozen=True)
class Quirks:
    name: str
    shift_uses_vy: bool = True                 # 8XY6/8XYE source: VY (True) or VX
    jump_uses_vx: bool = False                 # BNNN offset: V0 (False) or VX
    wrap_columns: bool = True                  # DXYN: wrap x past the right edge
    wrap_rows: bool = False                    # DXYN: wrap y past the bottom edge
    logic_resets_flag: bool = False            # 8XY1/2/3 clear VF
    load_store_increments_index: bool = False  # FX55/FX65 leave I = I + X + 1


CHIP8 = Quirks(name='chip8')

COSMAC_VIP = Quirks(
    name='cosmac-vip',
    wrap_columns=False,
    logic_resets_flag=True,
    load_store_increments_index=True,
)

CHIP48 = Quirks(
    name='chip48',
    shift_uses_vy=False,
    jump_uses_vx=True,
    wrap_columns=False,
)

PLATFORMS: Dict[str, Quirks] = {q.name: q for q in (CHIP8, COSMAC_VIP, CHIP48)}


def get_platform(platform: Union[str, Quirks]) -> Quirks:
    """Resolve a platform name (or pass through a Quirks instance)."""
    if isinstance(platform, Quirks):
        return platform
    key = platform.strip().lower()
    if key not in PLATFORMS:
        raise UnknownPlatform(platform, PLATFORMS)
    return PLATFORMS[key]
