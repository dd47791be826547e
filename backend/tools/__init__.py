from .tip_catalog import DeterministicTipProvider, tip_catalog
from .daily_tips import ExternalTipGenerator, parse_tips, build_prompt

__all__ = [
    'DeterministicTipProvider',
    'tip_catalog',
    'ExternalTipGenerator',
    'parse_tips',
    'build_prompt'
]
