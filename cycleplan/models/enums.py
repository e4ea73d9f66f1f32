from enum import Enum


class ProgramType(str, Enum):
    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
    POWERLIFTING = "powerlifting"
    BODYBUILDING = "bodybuilding"
    CARDIO = "cardio"
    HIIT = "hiit"
    FLEXIBILITY = "flexibility"
    GENERAL = "general"
    SPORT = "sport"
    REHABILITATION = "rehabilitation"


class ProgramDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
