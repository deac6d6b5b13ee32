import asyncio
import json
import os

# Must be set before cvmatch.main configures logging
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest

from cvmatch.models.cv import CVDocument
from cvmatch.models.match import RawOracleResponse
from cvmatch.models.settings import MatchSettings
from cvmatch.services.oracle import ScoringOracle, ScoringOracleAdapter
from cvmatch.services.session import MatchController


class StubOracle(ScoringOracle):
    """Scripted oracle: returns `content`, raises `error`, or blocks until released"""

    def __init__(self, content: str = "", error: Exception = None, delay: float = 0, block: bool = False):
        self.content = content
        self.error = error
        self.delay = delay
        self.block = block
        self.calls = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def complete(self, messages):
        self.calls.append(messages)
        self.started.set()
        if self.block:
            await self.release.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return RawOracleResponse(content=self.content, model="stub-model")


def make_result(scores=(80, 70, 60, 50, 40), overall=69, **overrides):
    names = ["Hard Skills", "Experience & Seniority", "Domain Knowledge",
             "Education & Certifications", "Soft Skills & Culture"]
    weights = [40, 25, 20, 10, 5]
    data = {
        "overallScore": overall,
        "categories": [
            {"name": n, "score": s, "weight": w, "details": f"{n} analysis"}
            for n, s, w in zip(names, scores, weights)
        ],
        "missingKeywords": ["AWS", "Kubernetes"],
        "strengths": ["Strong Python background"],
        "improvements": ["Add cloud certifications"],
        "summary": "Solid backend profile with gaps in cloud tooling.",
    }
    data.update(overrides)
    return data


@pytest.fixture
def settings():
    return MatchSettings(api_key="test-key", request_timeout=5, max_job_description_chars=1000)


@pytest.fixture
def cv():
    return CVDocument.model_validate({
        "personalInfo": {
            "fullName": "Jane Doe",
            "email": "jane@example.com",
            "phone": "",
            "location": "Berlin",
            "title": "Backend Engineer",
            "summary": "<p>Python developer with 6 years of experience</p>",
            "photo": "data:image/png;base64,AAAA",
        },
        "experience": [{
            "id": "exp-1",
            "company": "Acme",
            "position": "Senior Engineer",
            "startDate": "2019-01",
            "endDate": "",
            "current": True,
            "description": "Built Django services",
            "highlights": ["Led migration to PostgreSQL"],
        }],
        "education": [{"id": "edu-1", "institution": "TU Berlin", "degree": "MSc", "field": "CS"}],
        "skills": [{"category": "Languages", "items": ["Python", "SQL"]}],
        "languages": [{"name": "English", "level": "C1"}],
        "certifications": [],
        "projects": [{"id": "p-1", "name": "cvmatch", "technologies": ["FastAPI"]}],
    })


@pytest.fixture
def result_json():
    return json.dumps(make_result())


def controller_for(oracle: ScoringOracle, settings: MatchSettings) -> MatchController:
    return MatchController(ScoringOracleAdapter(oracle, settings), settings)


@pytest.fixture
def frontend_cv():
    return CVDocument.model_validate({
        "personalInfo": {"fullName": "Alex Kim", "title": "Full-stack Developer"},
        "experience": [{
            "id": "exp-1",
            "company": "Webshop GmbH",
            "position": "Developer",
            "description": "Built storefront features with React and a Node.js API",
        }],
        "skills": [{"category": "Hard Skills", "items": ["React", "Node.js"]}],
    })
