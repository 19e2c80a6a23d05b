import base64
import json

from magick_api.services.response import (
    binary_response, error_payload, image_response, metadata_header, success_payload,
)


METADATA = {"format": "png", "width": 800, "height": "auto"}


def test_success_payload_shape():
    payload = success_payload(b"abc", "png", METADATA)
    assert payload == {
        "success": 1,
        "image": base64.b64encode(b"abc").decode(),
        "mimetype": "image/png",
        "format": "png",
        "width": 800,
        "height": "auto",
    }


def test_error_payload_shape():
    assert error_payload("boom") == {"success": 0, "errormessage": "boom"}


def test_metadata_header_capitalizes_first_letter():
    assert metadata_header("width") == "X-Image-Width"
    assert metadata_header("effect") == "X-Image-Effect"


def test_binary_response_headers():
    response = binary_response(b"\xff\xd8jpegbytes", "jpg", {"format": "jpg", "quality": 80}, "optimized.jpg")
    assert response.body == b"\xff\xd8jpegbytes"
    assert response.media_type == "image/jpeg"
    assert response.headers["content-type"] == "image/jpeg"
    assert response.headers["content-length"] == str(len(b"\xff\xd8jpegbytes"))
    assert response.headers["content-disposition"] == 'attachment; filename="optimized.jpg"'
    assert response.headers["x-image-success"] == "1"
    assert response.headers["x-image-mimetype"] == "image/jpeg"
    assert response.headers["x-image-format"] == "jpg"
    assert response.headers["x-image-quality"] == "80"


def test_both_modes_carry_the_same_metadata():
    as_json = json.loads(image_response(b"img", "png", METADATA, "resized.png", "base64").body)
    as_binary = image_response(b"img", "png", METADATA, "resized.png", "binary")

    for key, value in METADATA.items():
        assert as_json[key] == value
        assert as_binary.headers[metadata_header(key)] == str(value)
    assert as_json["mimetype"] == as_binary.headers["x-image-mimetype"]
