import pytest
from pydantic import ValidationError

from src.api.core.config import Settings


def test_unknown_default_timezone_fails_on_load():
    with pytest.raises(ValidationError, match="DEFAULT_TIMEZONE"):
        Settings(DEFAULT_TIMEZONE="Mars/Olympus_Mons")  # type: ignore[call-arg]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", []),
        ("https://app.retreat.example", ["https://app.retreat.example"]),
        (" https://a.example , ,https://b.example ", ["https://a.example", "https://b.example"]),
    ],
)
def test_cors_origin_list(raw: str, expected: list[str]):
    assert Settings(CORS_ORIGINS=raw).cors_origin_list == expected  # type: ignore[call-arg]
