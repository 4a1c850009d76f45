from chain_fetch.classify import classify
from chain_fetch.models import ContentClassification, ContentKind


def test_json_with_charset_is_json():
    assert classify({"content-type": "application/json; charset=utf-8"}) == ContentClassification(ContentKind.JSON)


def test_header_name_is_case_insensitive():
    assert classify({"Content-Type": "text/html"}).kind is ContentKind.TEXT


def test_image_png_is_image_not_binary():
    c = classify({"content-type": "image/png"})
    assert c.kind is ContentKind.IMAGE
    assert c.format == "png"


def test_media_format_drops_parameters():
    c = classify({"content-type": "audio/mpeg; codecs=mp3"})
    assert c.kind is ContentKind.AUDIO
    assert c.format == "mpeg"


def test_video_and_octet_stream():
    assert classify({"content-type": "video/mp4"}) == ContentClassification(ContentKind.VIDEO, "mp4")
    assert classify({"content-type": "application/octet-stream"}).kind is ContentKind.BINARY


def test_unknown_and_missing_headers_never_raise():
    assert classify({"content-type": "application/xml"}).kind is ContentKind.UNKNOWN
    assert classify({}).kind is ContentKind.UNKNOWN
    assert classify(None).kind is ContentKind.UNKNOWN
    assert classify({"content-type": None}).kind is ContentKind.UNKNOWN


def test_result_is_always_a_defined_kind():
    samples = ["", "x", "text/", "image/", "APPLICATION/JSON", "multipart/form-data", ";;;"]
    for ct in samples:
        assert classify({"content-type": ct}).kind in set(ContentKind)
