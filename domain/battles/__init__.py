"""Battles: head-to-head lifecycle and finalization."""

from .state_machine import BattleStateMachine, BattleSubmitResult, battle_view

__all__ = [
    'BattleStateMachine',
    'BattleSubmitResult',
    'battle_view',
]
