import os
from unittest.mock import Mock

import pytest
import requests

from repair_shop.errors import TransportError
from repair_shop.services import HttpSmsTransport, SystemPdfPrinter, save_picked_image


class FakeResponse:
    def __init__(self, status=200):
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


class TestHttpSmsTransport:
    def test_unconfigured_gateway_raises(self):
        with pytest.raises(TransportError):
            HttpSmsTransport("").send("555", "hi")

    def test_posts_json_with_token(self, monkeypatch):
        captured = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            captured.update(url=url, payload=json, headers=headers, timeout=timeout)
            return FakeResponse()

        monkeypatch.setattr("repair_shop.services.requests.post", fake_post)
        HttpSmsTransport("https://sms.example.com/send", token="t0k", sender="SHOP", timeout=5).send("555", "ready")

        assert captured["url"] == "https://sms.example.com/send"
        assert captured["payload"] == {"to": "555", "message": "ready", "sender": "SHOP"}
        assert captured["headers"] == {"Authorization": "Bearer t0k"}
        assert captured["timeout"] == 5

    def test_http_error_becomes_transport_error(self, monkeypatch):
        monkeypatch.setattr("repair_shop.services.requests.post", lambda *a, **k: FakeResponse(503))
        with pytest.raises(TransportError):
            HttpSmsTransport("https://sms.example.com/send").send("555", "hi")

    def test_network_error_becomes_transport_error(self, monkeypatch):
        def boom(*args, **kwargs):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr("repair_shop.services.requests.post", boom)
        with pytest.raises(TransportError):
            HttpSmsTransport("https://sms.example.com/send").send("555", "hi")

    def test_from_settings(self, db):
        db.set_setting("sms_gateway_url", "https://gw.example.com")
        db.set_setting("sms_sender_id", "FIXIT")
        transport = HttpSmsTransport.from_settings(db)
        assert transport.url == "https://gw.example.com"
        assert transport.sender == "FIXIT"
        assert transport.token == ""


class TestSystemPdfPrinter:
    def test_save_writes_bytes(self, tmp_path):
        path = SystemPdfPrinter(str(tmp_path / "invoices")).save(b"%PDF-1.4 test", "invoice_3")
        assert path.endswith("invoice_3.pdf")
        with open(path, "rb") as f:
            assert f.read() == b"%PDF-1.4 test"

    def test_print_opens_viewer(self, tmp_path, monkeypatch):
        popen = Mock()
        monkeypatch.setattr("repair_shop.services.subprocess.Popen", popen)
        monkeypatch.setattr("repair_shop.services.sys.platform", "linux")
        path = SystemPdfPrinter(str(tmp_path)).print_document(b"%PDF", "x.pdf")
        popen.assert_called_once_with(["xdg-open", path])

    def test_missing_viewer_is_not_fatal(self, tmp_path, monkeypatch):
        monkeypatch.setattr("repair_shop.services.subprocess.Popen", Mock(side_effect=FileNotFoundError()))
        monkeypatch.setattr("repair_shop.services.sys.platform", "linux")
        path = SystemPdfPrinter(str(tmp_path)).print_document(b"%PDF", "x")
        assert os.path.exists(path)


class TestSavePickedImage:
    def test_cancelled_pick_returns_none(self, tmp_path):
        assert save_picked_image(None, str(tmp_path)) is None
        assert save_picked_image("", str(tmp_path)) is None

    def test_copies_into_images_dir(self, tmp_path):
        src = tmp_path / "camera" / "IMG_1.jpg"
        src.parent.mkdir()
        src.write_bytes(b"jpeg")
        dest = save_picked_image(str(src), str(tmp_path / "images"))
        assert dest == str(tmp_path / "images" / "IMG_1.jpg")
        assert open(dest, "rb").read() == b"jpeg"

    def test_name_clash_gets_new_name(self, tmp_path):
        images = tmp_path / "images"
        images.mkdir()
        (images / "IMG_1.jpg").write_bytes(b"old")
        src = tmp_path / "IMG_1.jpg"
        src.write_bytes(b"new")
        dest = save_picked_image(str(src), str(images))
        assert dest != str(images / "IMG_1.jpg")
        assert open(dest, "rb").read() == b"new"
        assert (images / "IMG_1.jpg").read_bytes() == b"old"

    def test_same_named_picks_in_same_second_keep_their_own_photo(self, tmp_path):
        images = tmp_path / "images"
        images.mkdir()
        (images / "IMG_1.jpg").write_bytes(b"old")
        paths = []
        for folder, content in (("a", b"photo-A"), ("b", b"photo-B")):
            src = tmp_path / folder / "IMG_1.jpg"
            src.parent.mkdir()
            src.write_bytes(content)
            paths.append(save_picked_image(str(src), str(images)))
        assert paths[0] != paths[1]
        assert open(paths[0], "rb").read() == b"photo-A"
        assert open(paths[1], "rb").read() == b"photo-B"

    def test_picking_file_already_in_images_dir_reuses_it(self, tmp_path):
        images = tmp_path / "images"
        images.mkdir()
        existing = images / "IMG_1.jpg"
        existing.write_bytes(b"jpeg")
        assert save_picked_image(str(existing), str(images)) == str(existing)
        assert sorted(p.name for p in images.iterdir()) == ["IMG_1.jpg"]
