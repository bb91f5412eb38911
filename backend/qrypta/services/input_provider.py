"""
Input providers for the pipeline's collecting stage

The orchestrator asks for one field at a time. An interactive provider keeps
asking until the value validates; a preset provider returns what it was given
and lets validation fail the run.
"""
from abc import ABC, abstractmethod
from typing import Callable, Mapping, Optional, Sequence

from qrypta.core.chains import CHAINS, ChainKey
from qrypta.core.errors import InvalidInput
from qrypta.core.utils import print_block

Validator = Callable[[str], bool]


class InputProvider(ABC):
    """One method per field the pipeline needs"""

    interactive: bool = False

    @abstractmethod
    def select_chain(self, available: Sequence[ChainKey]) -> ChainKey:
        ...

    @abstractmethod
    def recipient(self, validator: Validator) -> str:
        ...

    @abstractmethod
    def amount(self, validator: Validator) -> str:
        ...

    @abstractmethod
    def reference_title(self, default: str) -> str:
        ...

    @abstractmethod
    def confirm(self, summary: Mapping[str, str]) -> bool:
        """Confirmation checkpoint; True only on an explicit yes"""
        ...


class PresetInputProvider(InputProvider):
    """
    Non-interactive provider fed from CLI flags or tests

    `assume_yes` is the explicit override for the confirmation checkpoint;
    without it every run stops at the checkpoint.
    """

    interactive = False

    def __init__(
        self,
        chain: Optional[str] = None,
        recipient: Optional[str] = None,
        amount: Optional[str] = None,
        title: Optional[str] = None,
        assume_yes: bool = False,
    ):
        self._chain = chain
        self._recipient = recipient
        self._amount = amount
        self._title = title
        self.assume_yes = assume_yes

    def select_chain(self, available: Sequence[ChainKey]) -> ChainKey:
        if self._chain is None:
            if len(available) == 1:
                return available[0]
            raise InvalidInput("Network not specified", field="chain")
        try:
            return ChainKey(self._chain)
        except ValueError:
            raise InvalidInput(f"Unknown network: {self._chain!r}", field="chain", value=self._chain) from None

    def recipient(self, validator: Validator) -> str:
        return self._recipient or ""

    def amount(self, validator: Validator) -> str:
        return self._amount or ""

    def reference_title(self, default: str) -> str:
        return self._title if self._title is not None else default

    def confirm(self, summary: Mapping[str, str]) -> bool:
        return self.assume_yes


class InteractivePrompter(InputProvider):
    """
    Terminal provider; re-prompts until each value validates

    Values passed up front (CLI flags) are used without asking when they
    validate. The confirmation question is always asked.

    Args:
        prompt: Reads one answer (default builtin input)
        out: Writes one line (default print)
    """

    interactive = True

    def __init__(
        self,
        prompt: Callable[[str], str] = input,
        out: Callable[[str], None] = print,
        chain: Optional[str] = None,
        recipient: Optional[str] = None,
        amount: Optional[str] = None,
        title: Optional[str] = None,
    ):
        self._prompt = prompt
        self._out = out
        self._preset_chain = chain
        self._preset_recipient = recipient
        self._preset_amount = amount
        self._preset_title = title

    def _ask(self, message: str, field: str) -> str:
        try:
            return self._prompt(message).strip()
        except EOFError:
            raise InvalidInput("Input closed before a value was entered", field=field) from None

    def _ask_until_valid(
        self,
        message: str,
        field: str,
        validator: Validator,
        error: str,
        preset: Optional[str] = None,
    ) -> str:
        if preset is not None:
            if validator(preset.strip()):
                return preset.strip()
            self._out(error)
        while True:
            answer = self._ask(message, field)
            if validator(answer):
                return answer
            self._out(error)

    def select_chain(self, available: Sequence[ChainKey]) -> ChainKey:
        if not available:
            raise InvalidInput("No network available", field="chain")
        if self._preset_chain is not None:
            for key in available:
                if self._preset_chain == key.value:
                    return key
            self._out(f"Network {self._preset_chain!r} is not available")
        self._out("Select network:")
        for index, key in enumerate(available, start=1):
            self._out(f"  {index}) {CHAINS[key].label}")
        while True:
            answer = self._ask(f"Network [1-{len(available)}]: ", "chain").lower()
            if answer.isdigit() and 1 <= int(answer) <= len(available):
                return available[int(answer) - 1]
            for key in available:
                if answer == key.value:
                    return key
            self._out("Invalid choice")

    def recipient(self, validator: Validator) -> str:
        return self._ask_until_valid(
            "Recipient address (0x…): ", "recipient", validator, "Invalid address",
            preset=self._preset_recipient,
        )

    def amount(self, validator: Validator) -> str:
        return self._ask_until_valid(
            "Amount (human, e.g. 1.25): ", "amount", validator, "Invalid amount",
            preset=self._preset_amount,
        )

    def reference_title(self, default: str) -> str:
        if self._preset_title is not None:
            return self._preset_title
        return self._ask(f"ISO Reference title [{default}]: ", "title") or default

    def confirm(self, summary: Mapping[str, str]) -> bool:
        print_block("Transfer summary", summary, out=self._out)
        try:
            answer = self._prompt("Generate proof + broadcast now? [y/N]: ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")
