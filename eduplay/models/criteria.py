"""
Achievement criteria payloads

Each achievement type has its own strongly typed criteria model. Payloads are
authored as JSON objects with camelCase keys, e.g. {"minStars": 50}, and are
parsed once into the matching variant of the Criteria union.
"""
import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from eduplay.exceptions import CriteriaError


class _CriteriaBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SubjectMasterCriteria(_CriteriaBase):
    """All activities of a subject completed with at least min_stars"""
    achievement_type: Literal["SubjectMaster"] = "SubjectMaster"
    subject_id: str = Field(alias="subjectId")
    min_stars: int = Field(alias="minStars", ge=0, le=3)

    @field_validator("subject_id", mode="before")
    @classmethod
    def coerce_subject_id(cls, v: Any) -> Any:
        """Subject ids are authored as numbers or strings"""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class StarCollectorCriteria(_CriteriaBase):
    achievement_type: Literal["StarCollector"] = "StarCollector"
    min_stars: int = Field(alias="minStars", ge=0)


class StreakKeeperCriteria(_CriteriaBase):
    achievement_type: Literal["StreakKeeper"] = "StreakKeeper"
    min_days: int = Field(alias="minDays", ge=0)


class CrownChampionCriteria(_CriteriaBase):
    achievement_type: Literal["CrownChampion"] = "CrownChampion"
    min_crown_challenges: int = Field(alias="minCrownChallenges", ge=0)


class FirstStepCriteria(_CriteriaBase):
    achievement_type: Literal["FirstStep"] = "FirstStep"


class SpeedLearnerCriteria(_CriteriaBase):
    """Average completion time (seconds) at or below the limit"""
    achievement_type: Literal["SpeedLearner"] = "SpeedLearner"
    max_average_time: float = Field(alias="maxAverageTime", ge=0)


Criteria = Annotated[
    Union[
        SubjectMasterCriteria,
        StarCollectorCriteria,
        StreakKeeperCriteria,
        CrownChampionCriteria,
        FirstStepCriteria,
        SpeedLearnerCriteria,
    ],
    Field(discriminator="achievement_type"),
]

_criteria_adapter: TypeAdapter = TypeAdapter(Criteria)


def parse_criteria(
    achievement_type: str,
    payload: Optional[Union[str, dict[str, Any]]],
    achievement_id: Optional[str] = None
) -> Criteria:
    """
    Parse a criteria payload into its typed variant

    Args:
        achievement_type: Tag selecting the variant (e.g. "StarCollector")
        payload: JSON object string or already-decoded mapping
        achievement_id: Used for error context only

    Returns:
        The typed criteria model

    Raises:
        CriteriaError: Empty payload, invalid JSON, unknown type or missing keys
    """
    if payload is None or (isinstance(payload, str) and not payload.strip()):
        raise CriteriaError(
            "Criteria payload is empty",
            achievement_id=achievement_id,
            achievement_type=achievement_type,
            payload=payload
        )

    if isinstance(payload, str):
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError as e:
            raise CriteriaError(
                f"Criteria payload is not valid JSON: {e.msg}",
                achievement_id=achievement_id,
                achievement_type=achievement_type,
                payload=payload,
                cause=e
            )
    else:
        decoded = payload

    if not isinstance(decoded, dict):
        raise CriteriaError(
            "Criteria payload must be a JSON object",
            achievement_id=achievement_id,
            achievement_type=achievement_type,
            payload=payload
        )

    try:
        return _criteria_adapter.validate_python({**decoded, "achievement_type": achievement_type})
    except PydanticValidationError as e:
        raise CriteriaError(
            f"Invalid criteria for {achievement_type}: {e.error_count()} error(s)",
            achievement_id=achievement_id,
            achievement_type=achievement_type,
            payload=payload,
            cause=e
        )
