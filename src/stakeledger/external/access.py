"""Authorization gate consulted before every privileged mutation."""

from typing import Iterable, Protocol


class AccessGate(Protocol):
    """Capability predicates the ledger consults synchronously."""

    def is_governor(self, caller: str) -> bool: ...

    def is_guardian_or_governor(self, caller: str) -> bool: ...

    def is_pcv_controller(self, caller: str) -> bool: ...

    def is_paused(self) -> bool: ...


class CoreAccessGate:
    """Role registry with a system-wide pause switch."""

    def __init__(
        self,
        governors: Iterable[str] = (),
        guardians: Iterable[str] = (),
        pcv_controllers: Iterable[str] = (),
    ):
        self.governors = set(governors)
        self.guardians = set(guardians)
        self.pcv_controllers = set(pcv_controllers)
        self._paused = False

    def is_governor(self, caller: str) -> bool:
        return caller in self.governors

    def is_guardian_or_governor(self, caller: str) -> bool:
        return caller in self.guardians or caller in self.governors

    def is_pcv_controller(self, caller: str) -> bool:
        return caller in self.pcv_controllers

    def is_paused(self) -> bool:
        return self._paused

    def set_paused(self, paused: bool) -> None:
        self._paused = bool(paused)
