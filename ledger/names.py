from __future__ import annotations
from typing import Optional


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_display_name(name: str, nickname: Optional[str] = None,
                        surname: Optional[str] = None) -> str:
    """
    Full name as shown in lists and exports:
      - "Name 'Nick' Surname" when both optional parts are present
      - optional parts are dropped when blank
    """
    parts = [name.strip()]
    nick = _clean(nickname)
    if nick:
        parts.append(f"'{nick}'")
    last = _clean(surname)
    if last:
        parts.append(last)
    return " ".join(parts)


def format_graph_name(person) -> str:
    """
    Short node label for the graph:
      - nickname wins when present (it is how the user knows the person)
      - else 'Name Surname'
    """
    nick = _clean(getattr(person, "nickname", None))
    if nick:
        return nick
    last = _clean(getattr(person, "surname", None))
    if last:
        return f"{person.name.strip()} {last}"
    return person.name.strip()
