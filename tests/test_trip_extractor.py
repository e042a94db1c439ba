import pytest

from ecotravel.errors import ExtractionFailure
from ecotravel.llm.trip_extractor import TripExtractor


class FakeGemini:
    def __init__(self, output=None, error=None):
        self.output = output
        self.error = error
        self.prompts = []

    def generate_json(self, prompt, schema):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output


def test_extracts_trip_from_json():
    client = FakeGemini(
        '{"destination": "Lissabon", "estimatedCost": 900, "estimatedCo2": 45, '
        '"startDate": "2026-11-02", "endDate": "2026-11-09", "transportMode": "Bahn"}'
    )
    proposal = TripExtractor(client).extract("user: Lissabon mit dem Zug\nmodel: Super!")

    assert proposal.destination == "Lissabon"
    assert proposal.estimated_cost == 900
    assert proposal.start_date == "2026-11-02"
    assert "Lissabon mit dem Zug" in client.prompts[0]


def test_null_sentinel_means_no_trip():
    assert TripExtractor(FakeGemini("NULL")).extract("user: hm") is None
    assert TripExtractor(FakeGemini('"NULL"')).extract("user: hm") is None


def test_blank_transcript_skips_model():
    client = FakeGemini("NULL")
    assert TripExtractor(client).extract("   ") is None
    assert client.prompts == []


def test_model_failure_is_swallowed():
    assert TripExtractor(FakeGemini(error=RuntimeError("quota"))).extract("user: Rom") is None


def test_garbage_output_is_no_trip():
    assert TripExtractor(FakeGemini("Ich bin mir nicht sicher.")).extract("user: Rom") is None


def test_parse_handles_code_fences():
    raw = '```json\n{"destination": "Porto", "estimatedCost": 500, "estimatedCo2": 20, "transportMode": "Flug"}\n```'
    proposal = TripExtractor(FakeGemini()).parse(raw)
    assert proposal.destination == "Porto"
    assert proposal.transport_mode == "Flug"


def test_parse_without_destination_is_none():
    assert TripExtractor(FakeGemini()).parse('{"estimatedCost": 500}') is None


def test_parse_rejects_non_object():
    with pytest.raises(ExtractionFailure):
        TripExtractor(FakeGemini()).parse("[1, 2, 3]")


def test_parse_rejects_wrong_types():
    with pytest.raises(ExtractionFailure):
        TripExtractor(FakeGemini()).parse('{"destination": "Rom", "estimatedCost": "teuer"}')
