"""Named lookup of mode strategies, preloaded with the built-in modes."""

import logging

from src.errors import ModeNotFoundError
from src.modes.adversarial import adversarial_mode
from src.modes.base import DebateMode
from src.modes.collaborative import collaborative_mode
from src.modes.delphi import delphi_mode
from src.modes.devils_advocate import devils_advocate_mode
from src.modes.expert_panel import expert_panel_mode
from src.modes.red_team_blue_team import red_team_blue_team_mode
from src.modes.socratic import socratic_mode

logger = logging.getLogger(__name__)


def default_modes() -> list[DebateMode]:
    return [
        collaborative_mode(),
        adversarial_mode(),
        socratic_mode(),
        expert_panel_mode(),
        devils_advocate_mode(),
        delphi_mode(),
        red_team_blue_team_mode(),
    ]


class ModeRegistry:
    def __init__(self, register_defaults: bool = True) -> None:
        self._modes: dict[str, DebateMode] = {}
        if register_defaults:
            for mode in default_modes():
                self.register(mode)

    def register(self, mode: DebateMode, name: str | None = None) -> None:
        key = name or mode.name
        if key in self._modes:
            logger.debug("Replacing registered mode %s", key)
        self._modes[key] = mode

    def get_mode(self, name: str) -> DebateMode:
        """Raises ModeNotFoundError listing the available modes."""
        try:
            return self._modes[name]
        except KeyError:
            raise ModeNotFoundError(name, self.available_modes()) from None

    def has_mode(self, name: str) -> bool:
        return name in self._modes

    def remove_mode(self, name: str) -> bool:
        return self._modes.pop(name, None) is not None

    def available_modes(self) -> list[str]:
        return list(self._modes)

    def items(self) -> list[tuple[str, DebateMode]]:
        return list(self._modes.items())
