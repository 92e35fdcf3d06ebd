"""
Tests for POST /generate-deformations
"""
import pytest

from rigidity.core.config import DeformationMode

URL = "/generate-deformations"

NOD_REQUEST = {
    "control_points": [{"id": 5, "role": "head", "position": [0, 7, 0]}],
    "prompt": "nod head",
    "length": 1,
}


def test_nod_head_end_to_end(api, provider):
    provider.reply({"frames": [{"0": {"delta_x": 0, "delta_y": -0.1, "delta_z": 0}}]})

    response = api(DeformationMode.FRAMES).post(URL, json=NOD_REQUEST)

    assert response.status_code == 200
    assert response.json() == [{"5": {"delta_x": 0, "delta_y": -0.1, "delta_z": 0}}]
    assert response.headers["content-type"].startswith("application/json")
    assert "X-Request-ID" in response.headers

    # the model only ever sees dense ids
    sent = provider.sent_user_content()
    assert [p["id"] for p in sent["control_points"]] == [0]
    assert sent["prompt"] == "nod head"
    assert sent["length"] == 1


def test_duplicate_ids_answered_under_original_id(api, provider):
    provider.reply({"frames": [{
        "0": {"delta_x": 0.5, "delta_y": 0, "delta_z": 0},
        "1": {"delta_x": 0, "delta_y": 0.25, "delta_z": 0},
    }]})
    body = {
        "control_points": [
            {"id": 7, "role": "left arm", "position": [1, 2, 0]},
            {"id": 7, "role": "left hand", "position": [1.5, 2, 0]},
            {"id": 3, "role": "head", "position": [0, 7, 0]},
        ],
        "prompt": "wave",
        "length": 1,
    }

    response = api(DeformationMode.FRAMES).post(URL, json=body)

    assert response.status_code == 200
    assert response.json() == [{
        "7": {"delta_x": 0.5, "delta_y": 0, "delta_z": 0},
        "3": {"delta_x": 0, "delta_y": 0.25, "delta_z": 0},
    }]
    assert [p["id"] for p in provider.sent_user_content()["control_points"]] == [0, 0, 1]


def test_positions_mode_returns_deltas(api, provider):
    provider.reply({"frames": [
        {"0": {"x": 1.2, "y": 2.5, "z": 0.1}, "1": {"x": -1, "y": 2, "z": 0}},
        {"0": {"x": 1, "y": 2, "z": 0}},
    ]})
    body = {
        "control_points": [
            {"id": 10, "role": "left leg", "position": [1, 2, 0]},
            {"id": 20, "role": "right arm", "position": [-1, 2, 0]},
        ],
        "prompt": "make the character wave",
        "length": 2,
    }

    response = api(DeformationMode.POSITIONS).post(URL, json=body)

    assert response.status_code == 200
    assert response.json() == [
        {
            "10": {"delta_x": 0.2, "delta_y": 0.5, "delta_z": 0.1},
            "20": {"delta_x": 0, "delta_y": 0, "delta_z": 0},
        },
        {"10": {"delta_x": 0, "delta_y": 0, "delta_z": 0}},
    ]


def test_single_mode_returns_one_frame_without_length(api, provider):
    provider.reply({"0": {"delta_x": 0.3, "delta_y": 1.5, "delta_z": 0}})
    body = {
        "control_points": [{"id": 12, "role": "right arm", "position": [-1, 2, 0]}],
        "prompt": "raise the right arm",
    }

    response = api(DeformationMode.SINGLE).post(URL, json=body)

    assert response.status_code == 200
    assert response.json() == {"12": {"delta_x": 0.3, "delta_y": 1.5, "delta_z": 0}}
    assert "length" not in provider.sent_user_content()


def test_non_numeric_key_skipped_rest_of_frame_kept(api, provider):
    provider.reply({"frames": [{
        "abc": {"delta_x": 9, "delta_y": 9, "delta_z": 9},
        "0": {"delta_x": 0, "delta_y": -0.1, "delta_z": 0},
    }]})

    response = api(DeformationMode.FRAMES).post(URL, json=NOD_REQUEST)

    assert response.status_code == 200
    assert response.json() == [{"5": {"delta_x": 0, "delta_y": -0.1, "delta_z": 0}}]


def test_ids_missing_from_reply_are_dropped(api, provider):
    provider.reply({"frames": [{"1": {"delta_x": 1, "delta_y": 0, "delta_z": 0}}]})
    body = {
        "control_points": [
            {"id": 1, "role": "head", "position": [0, 7, 0]},
            {"id": 2, "role": "left arm", "position": [1, 2, 0]},
        ],
        "prompt": "shrug",
        "length": 1,
    }

    response = api(DeformationMode.FRAMES).post(URL, json=body)

    assert response.status_code == 200
    assert response.json() == [{"2": {"delta_x": 1, "delta_y": 0, "delta_z": 0}}]


@pytest.mark.parametrize("body", [
    {"prompt": "nod head", "length": 1},
    {"control_points": [], "prompt": "nod head", "length": 1},
    {"control_points": NOD_REQUEST["control_points"], "length": 1},
    {"control_points": NOD_REQUEST["control_points"], "prompt": "", "length": 1},
    {"control_points": NOD_REQUEST["control_points"], "prompt": "nod head"},
    {"control_points": NOD_REQUEST["control_points"], "prompt": "nod head", "length": 0},
    {"control_points": NOD_REQUEST["control_points"], "prompt": "nod head", "length": -2},
])
def test_invalid_request_rejected_without_external_call(api, provider, body):
    response = api(DeformationMode.FRAMES).post(URL, json=body)

    assert response.status_code == 400
    assert response.text == "Missing control_points, prompt, or invalid length"
    assert provider.requests == []


def test_single_mode_still_requires_prompt(api, provider):
    body = {"control_points": NOD_REQUEST["control_points"]}

    response = api(DeformationMode.SINGLE).post(URL, json=body)

    assert response.status_code == 400
    assert provider.requests == []


def test_invalid_json_body(api, provider):
    response = api().post(
        URL,
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.text == "Invalid JSON payload"
    assert provider.requests == []


def test_position_must_have_three_components(api, provider):
    body = dict(NOD_REQUEST, control_points=[{"id": 5, "role": "head", "position": [0, 7]}])

    response = api().post(URL, json=body)

    assert response.status_code == 400
    assert response.text.startswith("Invalid JSON payload")
    assert provider.requests == []


def test_non_finite_position_rejected(api, provider):
    response = api().post(
        URL,
        content='{"control_points": [{"id": 5, "role": "head", "position": [NaN, 7, 0]}], '
                '"prompt": "nod head", "length": 1}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.text.startswith("Invalid JSON payload")
    assert provider.requests == []


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_other_methods_not_allowed(api, provider, method):
    response = getattr(api(), method)(URL)

    assert response.status_code == 405
    assert provider.requests == []


def test_missing_api_key_is_server_error(api, provider):
    response = api(api_key=None).post(URL, json=NOD_REQUEST)

    assert response.status_code == 500
    assert response.text == "OpenAI API key not configured"
    assert provider.requests == []


def test_provider_error_is_server_error(api, provider):
    provider.fail(503, "The server is overloaded")

    response = api().post(URL, json=NOD_REQUEST)

    assert response.status_code == 500
    assert "The server is overloaded" in response.text
    assert len(provider.requests) == 1


def test_malformed_model_output_is_server_error(api, provider):
    provider.reply("this is not json")

    response = api().post(URL, json=NOD_REQUEST)

    assert response.status_code == 500
    assert response.text.startswith("Failed to parse OpenAI response")


def test_schema_mismatch_is_server_error(api, provider):
    provider.reply({"frames": [{"0": {"x": 1, "y": 2, "z": 3}}]})

    response = api(DeformationMode.FRAMES).post(URL, json=NOD_REQUEST)

    assert response.status_code == 500
    assert "Failed to parse OpenAI response" in response.text


@pytest.mark.parametrize("mode, reply", [
    (DeformationMode.FRAMES, '{"frames": [{"0": {"delta_x": NaN, "delta_y": 0, "delta_z": 0}}]}'),
    (DeformationMode.SINGLE, '{"0": {"delta_x": Infinity, "delta_y": 0, "delta_z": 0}}'),
    (DeformationMode.POSITIONS, '{"frames": [{"0": {"x": NaN, "y": 0, "z": 0}}]}'),
])
def test_non_finite_model_output_is_server_error(api, provider, mode, reply):
    provider.reply(reply)

    response = api(mode).post(URL, json=NOD_REQUEST)

    assert response.status_code == 500
    assert response.text.startswith("Failed to parse OpenAI response")
