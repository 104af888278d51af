from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from app.core import qr
from app.core.config import settings


def test_generate_qr_code_uses_fixed_rendering_parameters():
    url = qr.generate_qr_code("https://files.example.com/a b.pdf")
    parsed = urlparse(url)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://api.qrserver.com/v1/create-qr-code/"
    params = parse_qs(parsed.query)
    assert params == {
        "size": ["200x200"],
        "data": ["https://files.example.com/a b.pdf"],
        "format": ["png"],
        "bgcolor": ["ffffff"],
        "color": ["1e3a8a"],
    }


def test_generate_qr_code_is_pure():
    assert qr.generate_qr_code("x") == qr.generate_qr_code("x")


def test_landing_url_is_keyed_by_resource_id():
    assert qr.landing_url(42) == "https://library.example.com/?manual=42"


def test_qr_code_for_targets_landing_page_by_default():
    data = parse_qs(urlparse(qr.qr_code_for(5, "https://f/a.pdf")).query)["data"][0]
    assert data == "https://library.example.com/?manual=5"


def test_qr_code_for_can_target_the_file(monkeypatch):
    monkeypatch.setattr(settings, "QR_TARGET", "file")
    data = parse_qs(urlparse(qr.qr_code_for(5, "https://f/a.pdf")).query)["data"][0]
    assert data == "https://f/a.pdf"
    assert qr.qr_code_for(5, None) is None
