from src.forge.domain.preview_models import PreviewError, PreviewLoaded, parse_preview_message


def test_loaded_message():
    assert isinstance(parse_preview_message({"type": "preview-loaded"}), PreviewLoaded)


def test_error_message_keeps_text():
    msg = parse_preview_message({"type": "preview-error", "message": "App is not defined"})
    assert isinstance(msg, PreviewError)
    assert msg.message == "App is not defined"


def test_anything_else_is_dropped():
    assert parse_preview_message({"type": "webpackOk"}) is None
    assert parse_preview_message({"message": "no type"}) is None
    assert parse_preview_message(None) is None
    assert parse_preview_message(["preview-loaded"]) is None
