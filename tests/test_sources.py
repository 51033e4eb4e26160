from __future__ import annotations

import pytest
import requests

from teerpro.errors import SourceError, SourceErrorKind
from teerpro.games import Round
from teerpro.sources import MeghalayaTeerSource, SourcePair

URLS = {"shillong": "https://example.test/shillong", "khanapara": "https://example.test/khanapara"}


class _Response:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class _FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def _page(fr, sr):
    return (
        "<html><body><table>"
        f"<tr><td>F/R</td><td class='fr-result'> {fr} </td></tr>"
        f"<tr><td>S/R</td><td class='sr-result'>{sr}</td></tr>"
        "</table></body></html>"
    )


def test_from_raw_keeps_two_digit_values():
    assert SourcePair.from_raw("07", " 42 ") == SourcePair(fr="07", sr="42")
    assert SourcePair.from_raw("07", "--") == SourcePair(fr="07", sr=None)
    assert SourcePair.from_raw("XX", "--") is None
    assert SourcePair.from_raw(None, None) is None
    assert SourcePair.from_raw("123", "7") is None


def test_from_raw_rejects_non_ascii_digits():
    assert SourcePair.from_raw("\u0660\u0667", "\uff10\uff17") is None
    assert SourcePair.from_raw("\uff10\uff17", "42") == SourcePair(fr=None, sr="42")


def test_number_for_round():
    pair = SourcePair(fr="11", sr=None)

    assert pair.number_for(Round.FR) == "11"
    assert pair.number_for(Round.SR) is None


def test_fetch_parses_page():
    http = _FakeHttp(_Response(200, _page("64", "18")))
    source = MeghalayaTeerSource(URLS, http, timeout_seconds=3)

    assert source.fetch("shillong") == SourcePair(fr="64", sr="18")
    assert http.requests == [("https://example.test/shillong", 3)]


def test_fullwidth_digits_on_page_are_not_a_result():
    source = MeghalayaTeerSource(URLS, _FakeHttp(_Response(200, _page("\uff16\uff14", "--"))))

    assert source.fetch("shillong") is None


def test_placeholder_round_is_none():
    source = MeghalayaTeerSource(URLS, _FakeHttp(_Response(200, _page("64", "XX"))))

    assert source.fetch("shillong") == SourcePair(fr="64", sr=None)


def test_page_without_result_cells_is_no_result():
    source = MeghalayaTeerSource(URLS, _FakeHttp(_Response(200, "<html><body>Results at 3:30</body></html>")))

    assert source.fetch("khanapara") is None


def test_custom_selectors():
    html = "<div id='first'>05</div><div id='second'>--</div>"
    source = MeghalayaTeerSource(URLS, _FakeHttp(_Response(200, html)), fr_selector="#first", sr_selector="#second")

    assert source.fetch("shillong") == SourcePair(fr="05", sr=None)


@pytest.mark.parametrize(
    ("http", "kind"),
    [
        (_FakeHttp(error=requests.Timeout("read timed out")), SourceErrorKind.TIMEOUT),
        (_FakeHttp(error=requests.ConnectionError("refused")), SourceErrorKind.NETWORK),
        (_FakeHttp(_Response(503, "busy")), SourceErrorKind.HTTP_STATUS),
        (_FakeHttp(_Response(200, "   ")), SourceErrorKind.MALFORMED),
    ],
)
def test_fetch_errors_are_classified(http, kind):
    source = MeghalayaTeerSource(URLS, http)

    with pytest.raises(SourceError) as excinfo:
        source.fetch("shillong")

    assert excinfo.value.kind is kind
    assert excinfo.value.game == "shillong"


def test_game_without_url_is_unconfigured():
    http = _FakeHttp(_Response(200, _page("01", "02")))
    source = MeghalayaTeerSource(URLS, http)

    with pytest.raises(SourceError) as excinfo:
        source.fetch("night")

    assert excinfo.value.kind is SourceErrorKind.UNCONFIGURED
    assert http.requests == []
