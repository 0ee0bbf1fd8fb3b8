"""Models exchanged with the editor and chat AI helpers."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AIContext(BaseModel):
    """Global persona injected into editor prompts."""

    model_config = ConfigDict(populate_by_name=True)

    role: str = ""
    tone: Literal["formal", "tecnico", "casual", "legal"] = "formal"
    objective: str = ""
    custom_instructions: str = Field(
        default="",
        validation_alias=AliasChoices("custom_instructions", "customInstructions"),
    )


class ChatContext(BaseModel):
    """What the import assistant knows about the current document."""

    model_config = ConfigDict(populate_by_name=True)

    document_preview: str | None = Field(
        default=None,
        validation_alias=AliasChoices("document_preview", "documentPreview"),
    )
    current_strategy: str | None = Field(
        default=None,
        validation_alias=AliasChoices("current_strategy", "currentStrategy"),
    )
    user_instructions: str | None = Field(
        default=None,
        validation_alias=AliasChoices("user_instructions", "userInstructions"),
    )


class DocumentStructure(BaseModel):
    hierarchy: list[str] = Field(default_factory=list, description="Detected hierarchy levels")
    pattern: str = Field(default="", description="Structural pattern description")


class SplitRecommendation(BaseModel):
    strategy: str = ""
    reasoning: str = ""
    instructions: str = ""


class DeepAnalysisResult(BaseModel):
    """Structural report used to pick a splitting strategy."""

    summary: str = ""
    topic: str = ""
    structure: DocumentStructure = Field(default_factory=DocumentStructure)
    tags: list[str] = Field(default_factory=list)
    recommendation: SplitRecommendation = Field(default_factory=SplitRecommendation)


class EditProposal(BaseModel):
    """An AI edit with an HTML diff of the change."""

    model_config = ConfigDict(populate_by_name=True)

    thought_process: str = Field(
        default="",
        validation_alias=AliasChoices("thought_process", "thoughtProcess"),
    )
    new_text: str = Field(..., validation_alias=AliasChoices("new_text", "newText"))
    diff_html: str = Field(default="", validation_alias=AliasChoices("diff_html", "diffHtml"))


TransformInstruction = Literal["simplify", "expand", "tone_professional", "grammar"]
AnalysisType = Literal["summary", "key_points", "structure"]
