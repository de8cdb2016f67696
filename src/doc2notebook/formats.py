"""Named conversion profiles."""

from __future__ import annotations

from dataclasses import dataclass

from doc2notebook.exceptions import UnsupportedFormatError
from doc2notebook.schemas import SegmentCategory


@dataclass(frozen=True)
class SlideAudience:
    """One notebook produced from a presentation and what it shows."""

    notebook_name: str
    show_comments: bool = True
    comments_title: str = "Comments"
    show_notes: bool = True
    notes_title: str = "Notes"
    hide_timestamps: bool = False
    toc_without_sections: bool = False


@dataclass(frozen=True)
class FormatProfile:
    """How each kind of source is laid out in the notebook.

    Attributes:
        name: Name the profile is selected by.
        notebook_name: Notebook receiving markup, page-image and e-book sources.
        markup_category: Hierarchy policy for exported markup.
        slide_audiences: One entry per notebook built from a presentation.
        include_hidden_slides: Emit pages for hidden slides too.
    """

    name: str
    notebook_name: str
    markup_category: SegmentCategory = SegmentCategory.GENERIC
    slide_audiences: tuple[SlideAudience, ...] = ()
    include_hidden_slides: bool = False


_TRAINER = SlideAudience(
    notebook_name="Trainer Notebook",
    comments_title="Student Notes",
    notes_title="Trainer Notes",
    hide_timestamps=True,
    toc_without_sections=True,
)
_STUDENT = SlideAudience(
    notebook_name="Student Notebook",
    comments_title="Student Notes",
    show_notes=False,
    hide_timestamps=True,
    toc_without_sections=True,
)

GENERIC = FormatProfile(
    name="Generic",
    notebook_name="Generic",
    slide_audiences=(SlideAudience(notebook_name="Generic"),),
)
CHAPTER_OUTLINE = FormatProfile(
    name="Chapter Outline",
    notebook_name="Chapter Outline",
    markup_category=SegmentCategory.CHAPTER,
    slide_audiences=(SlideAudience(notebook_name="Chapter Outline"),),
)
COURSEWARE = FormatProfile(
    name="Courseware",
    notebook_name="Courseware",
    slide_audiences=(_TRAINER, _STUDENT),
)
COURSEWARE_TRAINER_ONLY = FormatProfile(
    name="Courseware - Trainer Only",
    notebook_name="Courseware",
    slide_audiences=(_TRAINER,),
)
COURSEWARE_STUDENT_ONLY = FormatProfile(
    name="Courseware - Student Only",
    notebook_name="Courseware",
    slide_audiences=(_STUDENT,),
)

_PROFILES = {
    profile.name: profile
    for profile in (
        GENERIC,
        CHAPTER_OUTLINE,
        COURSEWARE,
        COURSEWARE_TRAINER_ONLY,
        COURSEWARE_STUDENT_ONLY,
    )
}


def get_supported_formats() -> list[str]:
    return list(_PROFILES)


def get_profile(name: str) -> FormatProfile:
    """Look up a profile by name (case-insensitive)."""
    for profile_name, profile in _PROFILES.items():
        if profile_name.casefold() == name.casefold():
            return profile
    raise UnsupportedFormatError(
        f"Unknown format {name!r}; supported: {', '.join(_PROFILES)}"
    )
