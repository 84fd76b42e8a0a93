"""Header parsing shared by the effective checks.

Header names are matched case-insensitively by the multidict returned from the
probe. Values are lowered before comparison; directive lists are split on
``;`` and trimmed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


REDIRECT_STATUSES = frozenset({301, 302, 307, 308})


def header_values(headers: Mapping[str, str], name: str) -> list[str]:
    getall = getattr(headers, "getall", None)
    if getall is not None:
        return list(getall(name, []))
    lowered = name.lower()
    return [value for key, value in headers.items() if key.lower() == lowered]


def first_header(headers: Mapping[str, str], name: str) -> str | None:
    values = header_values(headers, name)
    return values[0] if values else None


def has_header(headers: Mapping[str, str], name: str) -> bool:
    return bool(header_values(headers, name))


def is_redirect(status: int) -> bool:
    return status in REDIRECT_STATUSES


def split_directives(value: str) -> list[str]:
    return [part.strip() for part in value.split(";") if part.strip()]


def directive_value(value: str, name: str) -> str | None:
    """Value of the first ``name=...`` directive, quotes dropped.

    Only a directive that begins with ``name=`` counts: ``max-age`` alone or
    ``max-age = 600`` yield ``None`` for ``max-age``.
    """

    prefix = f"{name.lower()}="
    for part in split_directives(value):
        if part.lower().startswith(prefix):
            return part[len(prefix):].strip().strip('"')
    return None


def csp_directives(value: str) -> dict[str, list[str]]:
    """``default-src 'self'; img-src *`` -> ``{"default-src": ["'self'"], "img-src": ["*"]}``."""

    directives: dict[str, list[str]] = {}
    for part in split_directives(value):
        tokens = part.split()
        key = tokens[0].lower()
        if key not in directives:
            directives[key] = [token.lower() for token in tokens[1:]]
    return directives


def permissions_policy_features(value: str) -> list[tuple[str, str]]:
    """``camera=(), geolocation=*`` -> ``[("camera", "()"), ("geolocation", "*")]``."""

    features: list[tuple[str, str]] = []
    for entry in value.split(","):
        name, sep, allowlist = entry.partition("=")
        if not sep or not name.strip():
            continue
        features.append((name.strip().lower(), allowlist.strip().lower()))
    return features


def policy_token(value: str) -> str:
    """Primary token of a single-valued policy header, parameters dropped."""

    return value.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class CookieFacts:
    raw: str
    name: str
    attributes: dict[str, str]

    @property
    def secure(self) -> bool:
        return "secure" in self.attributes

    @property
    def http_only(self) -> bool:
        return "httponly" in self.attributes

    @property
    def same_site(self) -> str | None:
        value = self.attributes.get("samesite")
        return value or None


def parse_set_cookie(raw: str) -> CookieFacts:
    parts = raw.split(";")
    name = parts[0].partition("=")[0].strip()
    attributes: dict[str, str] = {}
    for part in parts[1:]:
        attr, _, value = part.partition("=")
        key = attr.strip().lower()
        if key:
            attributes[key] = value.strip().lower()
    return CookieFacts(raw=raw.strip(), name=name, attributes=attributes)
