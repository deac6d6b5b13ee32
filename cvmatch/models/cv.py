from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Tuple


class CamelModel(BaseModel):
    """Immutable model exchanged with the browser client in camelCase"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# -------- CV document --------

class PersonalInfo(CamelModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    title: str = ""
    summary: str = ""  # rich text from the editor
    linkedin: Optional[str] = None
    website: Optional[str] = None
    photo: Optional[str] = None  # data URL, never sent to the oracle


class Experience(CamelModel):
    id: str = ""
    company: str = ""
    position: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    current: bool = False
    description: str = ""
    highlights: List[str] = Field(default_factory=list)


class Education(CamelModel):
    id: str = ""
    institution: str = ""
    degree: str = ""
    field: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    gpa: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)


class SkillGroup(CamelModel):
    category: str = ""
    items: List[str] = Field(default_factory=list)


class Language(CamelModel):
    name: str = ""
    level: str = ""


class Certification(CamelModel):
    id: str = ""
    name: str = ""
    issuer: str = ""
    date: str = ""
    url: Optional[str] = None


class Project(CamelModel):
    id: str = ""
    name: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)


class CVDocument(CamelModel):
    """Structured résumé as edited in the builder"""
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[SkillGroup] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)


    def contact_items(self) -> List[Tuple[str, str]]:
        """Non-empty contact fields as ordered (key, value) pairs"""
        info = self.personal_info
        pairs = [
            ("email", info.email),
            ("phone", info.phone),
            ("location", info.location),
            ("linkedin", info.linkedin),
            ("website", info.website),
        ]
        return [(k, v.strip()) for k, v in pairs if v and v.strip()]
