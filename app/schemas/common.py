from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, StringConstraints

from app.utils.time import parse_clock


def _valid_clock(value: str) -> str:
    # "24:00" passa no pattern mas não é horário; ValueError vira 422
    parse_clock(value)
    return value


# "HH:MM" ou "HH:MM:SS"; a saída é sempre HH:MM:SS
ClockStr = Annotated[
    str,
    StringConstraints(pattern=r"^\d{2}:\d{2}(:\d{2})?$"),
    AfterValidator(_valid_clock),
]
