"""Serialized note model: ``webb://`` URIs carrying deposit secrets."""

from __future__ import annotations

from dataclasses import dataclass, field

from shieldtx.errors import NoteError

SCHEME = "webb"

VERSIONS = ("v1",)
PROTOCOLS = ("mixer", "anchor", "vanchor")

# Query key -> Note attribute, in serialization order.
_MISC_KEYS = {
    "curve": "curve",
    "width": "width",
    "exp": "exponentiation",
    "hf": "hash_function",
    "backend": "backend",
    "token": "token_symbol",
    "denom": "denomination",
    "amount": "amount",
}
_INT_FIELDS = ("width", "exponentiation", "denomination")


@dataclass(frozen=True)
class Note:
    """A deposit note.

    Layout::

        webb://<version>:<protocol>/<source chain>:<target chain>/
            <source id data>:<target id data>/<secret>:<secret>.../?key=value&...
    """

    version: str
    protocol: str
    source_chain_id: str
    target_chain_id: str
    source_identifying_data: str
    target_identifying_data: str
    secrets: list[str] = field(repr=False)
    curve: str | None = None
    width: int | None = None
    exponentiation: int | None = None
    hash_function: str | None = None
    backend: str | None = None
    token_symbol: str | None = None
    denomination: int | None = None
    amount: str | None = None

    @classmethod
    def deserialize(cls, value: str) -> Note:
        scheme, sep, rest = value.partition("://")
        if not sep or scheme != SCHEME:
            raise NoteError(f"unsupported note scheme: {scheme!r}")

        parts = rest.split("/")
        if len(parts) < 5:
            raise NoteError(f"invalid note length: expected 5 parts, got {len(parts)}")
        authority, chain_ids, identifying, secrets, misc = parts[:5]

        version, protocol = _pair(authority, "authority")
        if version not in VERSIONS:
            raise NoteError(f"unsupported note version: {version}")
        if protocol not in PROTOCOLS:
            raise NoteError(f"unsupported note protocol: {protocol}")
        source_chain, target_chain = _pair(chain_ids, "chain ids")
        source_data, target_data = _pair(identifying, "chain identifying data")

        extras: dict[str, object] = {}
        query = misc.lstrip("?")
        for item in filter(None, query.split("&")):
            key, eq, raw = item.partition("=")
            if not eq or key not in _MISC_KEYS:
                raise NoteError(f"invalid note misc data: {item!r}")
            attr = _MISC_KEYS[key]
            if attr in _INT_FIELDS:
                try:
                    extras[attr] = int(raw)
                except ValueError:
                    raise NoteError(f"invalid integer for {key}: {raw!r}") from None
            else:
                extras[attr] = raw

        return cls(
            version=version,
            protocol=protocol,
            source_chain_id=source_chain,
            target_chain_id=target_chain,
            source_identifying_data=source_data,
            target_identifying_data=target_data,
            secrets=secrets.split(":"),
            **extras,  # type: ignore[arg-type]
        )

    def serialize(self) -> str:
        misc = "&".join(
            f"{key}={getattr(self, attr)}"
            for key, attr in _MISC_KEYS.items()
            if getattr(self, attr) is not None
        )
        return (
            f"{SCHEME}://{self.version}:{self.protocol}"
            f"/{self.source_chain_id}:{self.target_chain_id}"
            f"/{self.source_identifying_data}:{self.target_identifying_data}"
            f"/{':'.join(self.secrets)}"
            f"/?{misc}"
        )

    def __str__(self) -> str:
        return self.serialize()


def _pair(raw: str, what: str) -> tuple[str, str]:
    items = raw.split(":")
    if len(items) != 2:
        raise NoteError(f"invalid {what}: {raw!r}")
    return items[0], items[1]
