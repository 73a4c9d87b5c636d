"""Format compatibility table and converter availability checks."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import DEFAULT_SUPPORTED_FORMATS
from .interfaces import CredentialProvider


class CapabilityTable:
    """Immutable map of output format to the input formats it accepts."""

    def __init__(self, supported: Mapping[str, Iterable[str]]) -> None:
        frozen: Dict[str, Tuple[str, ...]] = {}
        for output, inputs in supported.items():
            frozen[str(output)] = tuple(dict.fromkeys(str(item) for item in inputs))
        self._supported = MappingProxyType(frozen)

    @classmethod
    def default(cls) -> "CapabilityTable":
        return cls(DEFAULT_SUPPORTED_FORMATS)

    def outputs(self) -> List[str]:
        return list(self._supported)

    def inputs_for(self, output: str) -> Tuple[str, ...]:
        return self._supported.get(output, ())

    def supports(self, source: str, target: str) -> bool:
        if target not in self._supported:
            return False
        return source in self._supported[target]

    def items(self) -> Iterable[Tuple[str, Tuple[str, ...]]]:
        return self._supported.items()


class CapabilityRegistry:
    def __init__(
        self,
        table: CapabilityTable,
        *,
        issuer_id: Optional[str] = None,
        credentials: Optional[CredentialProvider] = None,
    ) -> None:
        self._table = table
        self._issuer_id = issuer_id
        self._credentials = credentials

    @property
    def table(self) -> CapabilityTable:
        return self._table

    def supports(self, source: str, target: str) -> bool:
        return self._table.supports(source, target)

    def describe_supported_conversions(self) -> str:
        supports = ""
        for output, inputs in self._table.items():
            supports += ", ".join(inputs)
            supports += f" => {output};\n\n"
        return supports

    def is_available(self) -> bool:
        if not self._issuer_id or self._credentials is None:
            return False

        issuer = self._credentials.get_issuer(self._issuer_id)
        if issuer is None:
            return False

        if not issuer.is_enabled():
            return False

        return bool(issuer.is_system_account_connected())
