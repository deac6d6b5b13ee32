import json

import pytest

from cvmatch.models.cv import CVDocument
from cvmatch.models.settings import MatchSettings
from cvmatch.services.normalizer import normalize, serialize_cv
from cvmatch.utils.exceptions import EmptyJobDescription, FailureReason, OversizedJobDescription


class TestSerializeCV:
    """Canonical CV payload sent to the oracle"""

    def test_ids_and_photo_are_excluded(self, cv):
        payload = json.loads(serialize_cv(cv))

        assert "photo" not in payload["personalInfo"]
        assert "id" not in payload["experience"][0]
        assert "id" not in payload["education"][0]
        assert "id" not in payload["projects"][0]
        assert payload["experience"][0]["company"] == "Acme"

    def test_uses_camel_case_keys(self, cv):
        payload = json.loads(serialize_cv(cv))

        assert payload["personalInfo"]["fullName"] == "Jane Doe"
        assert payload["experience"][0]["startDate"] == "2019-01"

    def test_serialization_is_deterministic(self, cv):
        same_cv = CVDocument.model_validate(cv.model_dump(by_alias=True))
        assert serialize_cv(cv) == serialize_cv(same_cv)

    def test_non_ascii_is_kept(self):
        cv = CVDocument.model_validate({"personalInfo": {"fullName": "Nguyễn Văn A"}})
        assert "Nguyễn Văn A" in serialize_cv(cv)

    def test_contact_items_skip_empty_values(self, cv):
        assert cv.contact_items() == [("email", "jane@example.com"), ("location", "Berlin")]


class TestNormalize:
    """Job description validation and normalization"""

    def test_job_text_is_trimmed(self, cv, settings):
        normalized = normalize(cv, "  \n Senior Python Developer \n\n", settings)

        assert normalized.job_text == "Senior Python Developer"
        assert normalized.original_length == len("Senior Python Developer")
        assert normalized.truncated is False

    def test_normalization_is_idempotent(self, cv, settings):
        first = normalize(cv, "  Python, Django, AWS  ", settings)
        second = normalize(cv, first.job_text, settings)

        assert first == second

    @pytest.mark.parametrize("job_text", ["", "   ", "\n\t \n", None])
    def test_empty_job_description_rejected(self, cv, settings, job_text):
        with pytest.raises(EmptyJobDescription) as exc_info:
            normalize(cv, job_text, settings)

        assert exc_info.value.status_code == 400
        assert exc_info.value.reason == FailureReason.EMPTY_JOB_DESCRIPTION

    def test_oversized_job_description_rejected_by_default(self, cv, settings):
        with pytest.raises(OversizedJobDescription) as exc_info:
            normalize(cv, "x" * 1001, settings)

        assert exc_info.value.details["length"] == 1001
        assert exc_info.value.details["limit"] == 1000

    def test_job_description_at_limit_accepted(self, cv, settings):
        normalized = normalize(cv, "x" * 1000, settings)
        assert normalized.truncated is False

    def test_oversized_job_description_truncated_when_configured(self, cv):
        settings = MatchSettings(api_key="k", max_job_description_chars=10, oversize_policy="truncate")
        normalized = normalize(cv, "abcdefghijKLMNOP", settings)

        assert normalized.job_text == "abcdefghij"
        assert normalized.truncated is True
        assert normalized.truncated_at == 10
        assert normalized.original_length == 16

        report = normalized.report()
        assert report.truncated is True
        assert report.original_length == 16
