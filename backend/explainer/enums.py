from enum import Enum
from typing import List, Optional


class Subject(str, Enum):
    """Closed set of academic topics a problem can be filed under."""

    MATH_ALGEBRA = "Mathematics - Algebra"
    MATH_GEOMETRY = "Mathematics - Geometry"
    MATH_CALCULUS = "Mathematics - Calculus"
    MATH_STATISTICS = "Mathematics - Statistics"
    MATH_TRIGONOMETRY = "Mathematics - Trigonometry"
    PHYSICS_MECHANICS = "Physics - Mechanics"
    PHYSICS_ELECTRICITY = "Physics - Electricity"
    PHYSICS_THERMODYNAMICS = "Physics - Thermodynamics"
    PHYSICS_OPTICS = "Physics - Optics"
    CHEMISTRY_ORGANIC = "Chemistry - Organic"
    CHEMISTRY_INORGANIC = "Chemistry - Inorganic"
    CHEMISTRY_PHYSICAL = "Chemistry - Physical"
    BIOLOGY_CELL = "Biology - Cell Biology"
    BIOLOGY_GENETICS = "Biology - Genetics"
    BIOLOGY_ECOLOGY = "Biology - Ecology"
    CS_PROGRAMMING = "Computer Science - Programming"
    CS_DATA_STRUCTURES = "Computer Science - Data Structures"
    CS_ALGORITHMS = "Computer Science - Algorithms"
    ENGINEERING_MECHANICAL = "Engineering - Mechanical"
    ENGINEERING_ELECTRICAL = "Engineering - Electrical"
    ENGINEERING_CIVIL = "Engineering - Civil"
    ECONOMICS = "Economics"
    BUSINESS = "Business"
    LITERATURE = "Literature"
    HISTORY = "History"
    OTHER = "Other"

    @classmethod
    def labels(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def from_label(cls, label: str) -> Optional["Subject"]:
        """Exact match only; no case folding or fuzzy matching."""
        try:
            return cls(label)
        except ValueError:
            return None


FALLBACK_SUBJECT = Subject.OTHER


class Rating(str, Enum):
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
