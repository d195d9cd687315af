"""
Core Form Model Objects

Defines the fundamental data structures of a form template.

These are plain data classes representing:
    - Field types (the closed variant set)
    - Options, validation rules
    - Fields (questions and display elements)
    - Pages (ordered groups of fields)
    - Theme and cover page
    - Templates (root container)
    - Submissions (one respondent's completed answers)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering or transport
        - Are fully serializable (see dfe.serialization)
        - Represent structure, not behavior
    Mutations that must keep the document coherent live in dfe.editor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .conditions import ConditionalRule


class FieldType(Enum):
    """
    The closed set of field variants.

    Adding a member here requires a validator branch (dfe.validator) and a
    contract branch (dfe.backends.contracts). Both tables are checked for
    totality at import time.
    """

    # Text inputs
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    PASSWORD = "password"
    NUMBER = "number"

    # Choices
    MULTIPLE_CHOICE = "multiple-choice"
    CHECKBOXES = "checkboxes"
    DROPDOWN = "dropdown"
    PICTURE_CHOICE = "picture-choice"

    # Date & time
    DATE = "date"
    TIME = "time"
    DATE_TIME = "date-time"
    DATE_RANGE = "date-range"

    # Rating & ranking
    RATING = "rating"
    RANKING = "ranking"
    SLIDER = "slider"
    OPINION_SCALE = "opinion-scale"

    # Special
    FILE_UPLOAD = "file-upload"
    SIGNATURE = "signature"
    COLOR_PICKER = "color-picker"
    LOCATION = "location"
    ADDRESS = "address"
    CURRENCY = "currency"

    # Display elements
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BANNER = "banner"
    DIVIDER = "divider"
    IMAGE = "image"
    VIDEO = "video"


STRUCTURAL_TYPES = frozenset({
    FieldType.HEADING,
    FieldType.PARAGRAPH,
    FieldType.BANNER,
    FieldType.DIVIDER,
    FieldType.IMAGE,
    FieldType.VIDEO,
})

CHOICE_TYPES = frozenset({
    FieldType.MULTIPLE_CHOICE,
    FieldType.CHECKBOXES,
    FieldType.DROPDOWN,
    FieldType.PICTURE_CHOICE,
    FieldType.RANKING,
})

# Type tags written by older versions of the public form page
LEGACY_TYPE_ALIASES: Dict[str, FieldType] = {
    "short_answer": FieldType.SHORT_TEXT,
    "long_answer": FieldType.LONG_TEXT,
    "multiple_choice": FieldType.MULTIPLE_CHOICE,
}


def resolve_field_type(raw: Union["FieldType", str, None]) -> Optional[FieldType]:
    """
    Resolve a stored type tag to a FieldType.

    Returns:
        FieldType for known tags and legacy aliases, None for unknown tags
    """
    if isinstance(raw, FieldType):
        return raw
    if raw is None:
        return None
    try:
        return FieldType(raw)
    except ValueError:
        return LEGACY_TYPE_ALIASES.get(raw)


@dataclass
class FieldOption:
    """
    One selectable option of a choice field.

    Properties:
        id: Option identifier
        label: Text shown to the respondent
        value: Value stored in the answer
    """

    id: str
    label: str
    value: str


@dataclass
class FieldValidation:
    """
    Validation settings of a field.

    Every property is optional. Absent properties are not written back,
    so a stored {} stays {}.

    Properties:
        required: Field must be answered while visible
        min_length / max_length: Bounds on text length (or selection count)
        min / max: Numeric bounds
        pattern: Regular expression a text answer must match
        file_types: Accepted extensions for file uploads
        max_file_size: Maximum upload size in MB
    """

    required: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    file_types: Optional[List[str]] = None
    max_file_size: Optional[float] = None


@dataclass
class FormField:
    """
    One question, input, or display unit on a page.

    Properties:
        id:
            Stable identifier. Conditional rules join on it, so it must
            never change once persisted.

        type:
            FieldType for known tags. Unknown tags are kept as the raw
            string so that newer documents survive a load/save cycle.

        label / placeholder / description:
            Display text

        order:
            Position within the page (dense, from 0)

        validation:
            FieldValidation or None

        options:
            FieldOption list for choice variants, None otherwise

        conditional_logic:
            Visibility rules. All must hold for the field to show.

        default_value:
            Authoring default, kept for round-trip

        extra:
            Unknown document keys, preserved verbatim
    """

    id: str
    type: Union[FieldType, str]
    label: str = ""
    order: int = 0
    placeholder: Optional[str] = None
    description: Optional[str] = None
    validation: Optional[FieldValidation] = None
    options: Optional[List[FieldOption]] = None
    conditional_logic: Optional[List[ConditionalRule]] = None
    default_value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.type, str):
            try:
                self.type = FieldType(self.type)
            except ValueError:
                pass

    @property
    def kind(self) -> Optional[FieldType]:
        """Resolved FieldType, or None for an unknown type tag."""
        return resolve_field_type(self.type)

    @property
    def type_tag(self) -> str:
        return self.type.value if isinstance(self.type, FieldType) else self.type

    @property
    def is_structural(self) -> bool:
        return self.kind in STRUCTURAL_TYPES

    @property
    def is_choice(self) -> bool:
        return self.kind in CHOICE_TYPES

    @property
    def is_required(self) -> bool:
        return bool(self.validation and self.validation.required)

    @property
    def rules(self) -> List[ConditionalRule]:
        return list(self.conditional_logic or [])

    def option_values(self) -> List[str]:
        return [opt.value for opt in (self.options or [])]


@dataclass
class FormPage:
    """
    An ordered group of fields shown together.

    Properties:
        id: Stable page identifier (key of FormSubmission.data)
        name: Page title
        description: Optional subtitle
        order: Position within the template (dense, from 0)
        fields: Ordered FormField list
        extra: Unknown document keys, preserved verbatim
    """

    id: str
    name: str = ""
    order: int = 0
    description: Optional[str] = None
    fields: List[FormField] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def get_field(self, field_id: str) -> Optional[FormField]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def answerable_fields(self) -> List[FormField]:
        return [f for f in self.fields if not f.is_structural]


class ThemeMode(Enum):
    LIGHT = "light"
    DARK = "dark"


DEFAULT_ACCENT_COLOR = "#f97316"


@dataclass
class FormTheme:
    """
    Visual theme of a template.

    Properties:
        accent_color: Primary color (hex)
        mode: ThemeMode
        styles: Extended style keys (fontFamily, backgroundColor,
                borderRadius, ...) stored flat next to accentColor/mode
    """

    accent_color: str = DEFAULT_ACCENT_COLOR
    mode: ThemeMode = ThemeMode.LIGHT
    styles: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CoverPage:
    """Optional informational page shown before the first page."""

    title: str = "Welcome"
    show_cover: bool = False
    description: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class FormTemplate:
    """
    Root container for an authored form definition.

    This is THE persisted document. Everything a respondent session needs
    is derivable from this object alone.

    Properties:
        id:
            Store identifier, None until first persisted

        project_id:
            Owning project reference

        name / description:
            Display metadata

        theme / cover_page:
            Presentation settings

        pages:
            Ordered FormPage list (never empty once validated)

        is_published / slug:
            Publication state. The slug is assigned on publish.

        submission_count / view_count:
            Counters maintained by the store

        extra:
            Unknown document keys (createdAt, publishedUrl, ...)

    INVARIANTS:
        - At least one page exists
        - Page ids are unique; field ids are unique across the template
        - Every conditional rule references an existing other field
    """

    project_id: str = ""
    name: str = "Untitled Form"
    id: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None
    theme: FormTheme = field(default_factory=FormTheme)
    cover_page: CoverPage = field(default_factory=CoverPage)
    pages: List[FormPage] = field(default_factory=list)
    is_published: bool = False
    submission_count: Optional[int] = None
    view_count: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def get_page(self, page_id: str) -> Optional[FormPage]:
        """
        Retrieve a page by ID.

        Args:
            page_id: Page identifier

        Returns:
            FormPage or None if not found
        """
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def get_field(self, field_id: str) -> Optional[FormField]:
        """
        Retrieve a field by ID, searching every page.

        Args:
            field_id: Field identifier

        Returns:
            FormField or None if not found
        """
        for page in self.pages:
            found = page.get_field(field_id)
            if found is not None:
                return found
        return None

    def find_field_page(self, field_id: str) -> Optional[Tuple[int, FormPage]]:
        """Return (page index, page) holding the field, or None."""
        for index, page in enumerate(self.pages):
            if page.get_field(field_id) is not None:
                return index, page
        return None

    def iter_fields(self) -> Iterator[FormField]:
        """Yield every field in document order."""
        for page in self.pages:
            yield from page.fields

    def fields_by_id(self) -> Dict[str, FormField]:
        return {f.id: f for f in self.iter_fields()}

    def field_ids(self) -> List[str]:
        return [f.id for f in self.iter_fields()]

    def page_ids(self) -> List[str]:
        return [p.id for p in self.pages]


@dataclass
class FormSubmission:
    """
    Immutable record of one respondent's completed answers.

    Properties:
        template_id: Template the answers belong to
        data: page id -> field id -> answer value
        respondent_email / respondent_name: Derived identity (best effort)
        started_at / completed_at: ISO 8601 timestamps
        ip_address / user_agent: Request metadata filled by the store
    """

    template_id: Optional[str]
    data: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    id: Optional[str] = None
    project_id: Optional[str] = None
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def answer_for(self, field_id: str) -> Any:
        for page_answers in self.data.values():
            if field_id in page_answers:
                return page_answers[field_id]
        return None
