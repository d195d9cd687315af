"""
Example form templates.

build_example_contact_form:
    Two pages. "Contact" asks for a required email; "Details" shows a
    required "Company Name" only to the VIP address.

build_example_survey_form:
    Cover page, choice and structural fields, and a conditional chain
    (features -> chart feedback -> follow-up).
"""
from dfe.conditions import ConditionalRule, ConditionOperator
from dfe.model import (
    CoverPage,
    FieldOption,
    FieldType,
    FieldValidation,
    FormField,
    FormPage,
    FormTemplate,
)

VIP_EMAIL = "vip@example.com"


def _options(*pairs):
    return [FieldOption(id=f"opt-{value}", label=label, value=value) for value, label in pairs]


def build_example_contact_form(project_id: str = "project-demo") -> FormTemplate:
    contact = FormPage(
        id="page-contact",
        name="Contact",
        order=0,
        fields=[
            FormField(
                id="field-email",
                type=FieldType.EMAIL,
                label="Email Address",
                order=0,
                validation=FieldValidation(required=True),
            ),
            FormField(
                id="field-full-name",
                type=FieldType.SHORT_TEXT,
                label="Your Full Name",
                order=1,
                validation=FieldValidation(required=False, max_length=80),
            ),
        ],
    )

    # Company Name is only asked of the VIP address
    details = FormPage(
        id="page-details",
        name="Details",
        order=1,
        fields=[
            FormField(
                id="field-company",
                type=FieldType.SHORT_TEXT,
                label="Company Name",
                order=0,
                validation=FieldValidation(required=True),
                conditional_logic=[
                    ConditionalRule(
                        id="logic-vip",
                        trigger_field_id="field-email",
                        condition=ConditionOperator.EQUALS,
                        value=VIP_EMAIL,
                        target_field_ids=("field-company",),
                    )
                ],
            ),
            FormField(
                id="field-notes",
                type=FieldType.LONG_TEXT,
                label="Anything else?",
                order=1,
            ),
        ],
    )

    return FormTemplate(
        id="form-contact",
        project_id=project_id,
        name="Contact Us",
        slug="contact-us",
        is_published=True,
        pages=[contact, details],
    )


def build_example_survey_form(project_id: str = "project-demo", show_cover: bool = True) -> FormTemplate:
    about = FormPage(
        id="page-about",
        name="About you",
        order=0,
        fields=[
            FormField(id="field-intro", type=FieldType.HEADING, label="Tell us about yourself", order=0),
            FormField(
                id="field-name",
                type=FieldType.SHORT_TEXT,
                label="Your Name",
                order=1,
                validation=FieldValidation(required=True, min_length=2),
            ),
            FormField(
                id="field-satisfaction",
                type=FieldType.RATING,
                label="How satisfied are you?",
                order=2,
                validation=FieldValidation(required=True),
            ),
            FormField(
                id="field-source",
                type=FieldType.MULTIPLE_CHOICE,
                label="How did you hear about us?",
                order=3,
                options=_options(("search", "Search engine"), ("friend", "A friend"), ("other", "Other")),
            ),
            FormField(
                id="field-source-other",
                type=FieldType.SHORT_TEXT,
                label="Please specify",
                order=4,
                validation=FieldValidation(required=True),
                conditional_logic=[
                    ConditionalRule(id="logic-source-other", trigger_field_id="field-source", value="other"),
                ],
            ),
        ],
    )

    # Chain: chart feedback depends on features, follow-up on chart feedback
    feedback = FormPage(
        id="page-feedback",
        name="Feedback",
        order=1,
        fields=[
            FormField(
                id="field-features",
                type=FieldType.CHECKBOXES,
                label="Which features do you use?",
                order=0,
                options=_options(("forms", "Forms"), ("charts", "Charts"), ("exports", "Exports")),
                validation=FieldValidation(required=True, max_length=2),
            ),
            FormField(id="field-divider", type=FieldType.DIVIDER, order=1),
            FormField(
                id="field-charts-feedback",
                type=FieldType.LONG_TEXT,
                label="What could we improve about charts?",
                order=2,
                conditional_logic=[
                    ConditionalRule(
                        id="logic-charts",
                        trigger_field_id="field-features",
                        condition=ConditionOperator.CONTAINS,
                        value="charts",
                    ),
                ],
            ),
            FormField(
                id="field-charts-contact",
                type=FieldType.EMAIL,
                label="Email for chart follow-up",
                order=3,
                conditional_logic=[
                    ConditionalRule(
                        id="logic-charts-followup",
                        trigger_field_id="field-charts-feedback",
                        condition=ConditionOperator.IS_NOT_EMPTY,
                    ),
                ],
            ),
            FormField(
                id="field-team-size",
                type=FieldType.NUMBER,
                label="How many people are on your team?",
                order=4,
                validation=FieldValidation(min=1, max=500),
            ),
            FormField(
                id="field-thanks",
                type=FieldType.PARAGRAPH,
                label="Thanks for helping us improve.",
                order=5,
            ),
        ],
    )

    return FormTemplate(
        id="form-survey",
        project_id=project_id,
        name="Customer Survey",
        description="A short survey about how you use the product.",
        cover_page=CoverPage(
            title="Customer Survey",
            description="Takes about two minutes.",
            show_cover=show_cover,
        ),
        pages=[about, feedback],
    )
