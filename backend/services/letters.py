"""
Letter Service
Templated letters of support, consultant commitment and vendor commitment.
"""

from datetime import date
from typing import Optional

import structlog

from backend.core.config import settings
from backend.core.exceptions import ValidationError
from backend.schemas.letters import LetterRequest, LetterResponse
from backend.services.llm_client import LLMError, get_llm_client

logger = structlog.get_logger(__name__)


LETTER_TYPES = ["support", "consultant", "vendor"]

LETTER_REQUIRED_FIELDS = {
    "all": [
        "type",
        "recipient_name",
        "recipient_institution",
        "project_title",
        "pi_name",
        "pi_institution",
        "grant_mechanism",
    ],
    "consultant": ["consultant_expertise", "consultant_role", "consultant_effort"],
    "vendor": ["vendor_product", "vendor_commitment"],
}

REFINE_SYSTEM_PROMPT = """You edit letters that accompany NIH and SBIR/STTR grant applications.
Improve tone and specificity while keeping every fact, name, date and commitment unchanged.
Return only the revised letter text."""


def format_letter_date(on: Optional[date] = None) -> str:
    """Long US date, e.g. 'March 5, 2025'."""
    on = on or date.today()
    return f"{on.strftime('%B')} {on.day}, {on.year}"


def _plain_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _custom(data: LetterRequest) -> str:
    return "\n\n".join(data.custom_paragraphs)


def _signature(data: LetterRequest) -> str:
    return f"""Sincerely,

{data.recipient_name}
{data.recipient_title}
{data.recipient_institution}"""


def support_letter(data: LetterRequest, on: Optional[date] = None) -> str:
    title_line = f"{data.recipient_title}\n" if data.recipient_title else ""
    collaboration = data.collaboration_details or (
        f"Our institution has an established collaborative relationship with {data.pi_name}'s research team. "
        "We have worked together on projects of mutual scientific interest and have found these "
        "collaborations to be highly productive and beneficial to both parties."
    )

    return f"""{data.recipient_institution}
{title_line}

{format_letter_date(on)}

RE: Letter of Support for "{data.project_title}"
{data.grant_mechanism} Application

Dear Review Committee,

I am writing to express my strong support for the {data.grant_mechanism} application entitled "{data.project_title}" submitted by {data.pi_name} at {data.pi_institution}.

{collaboration}

{data.pi_name}'s research program addresses an important area of unmet need, and this proposed project has significant potential for impact. The research team has the expertise and resources necessary to successfully execute the proposed aims.

{_custom(data)}

We are committed to supporting this project and look forward to a productive collaboration. Please do not hesitate to contact me if you require any additional information.

{_signature(data)}"""


def consultant_letter(data: LetterRequest, on: Optional[date] = None) -> str:
    effort = data.consultant_effort or "5% annual effort"
    rate = f"at a rate of ${_plain_number(data.consultant_rate)}/day" if data.consultant_rate else ""
    expertise = data.consultant_expertise or (
        "I bring specialized expertise relevant to this project that will complement "
        "the research team's capabilities."
    )
    role = data.consultant_role or (
        "As a consultant, I will provide expert guidance, review experimental designs, participate in "
        "data interpretation, and contribute to manuscript preparation as needed."
    )

    return f"""{data.recipient_institution}
{data.recipient_title}

{format_letter_date(on)}

RE: Consultant Commitment Letter for "{data.project_title}"
{data.grant_mechanism} Application

Dear Review Committee,

I am writing to confirm my commitment to serve as a consultant on the {data.grant_mechanism} application entitled "{data.project_title}" submitted by {data.pi_name} at {data.pi_institution}.

EXPERTISE AND ROLE:
{expertise}

{role}

COMMITMENT:
I commit to providing {effort} {rate} to support this project. This level of effort is appropriate given the scope of my consultative role and will ensure timely and meaningful contributions to the project's success.

QUALIFICATIONS:
My background and experience make me well-suited to contribute to this project. I have extensive experience in the relevant scientific domain and have previously collaborated successfully with academic research teams.

{_custom(data)}

I am enthusiastic about the opportunity to contribute to this important research and am confident in the project's potential for success. Please contact me if you require any additional information.

{_signature(data)}"""


def vendor_letter(data: LetterRequest, on: Optional[date] = None) -> str:
    product = data.vendor_product or (
        "We will provide the specialized products and/or services required for this research project."
    )
    commitment = data.vendor_commitment or (
        "We confirm our ability to meet the timeline and specifications outlined in the grant application. "
        "Our company has the capacity and resources to fulfill this commitment throughout the project period."
    )

    return f"""{data.recipient_institution}

{format_letter_date(on)}

RE: Vendor Commitment Letter for "{data.project_title}"
{data.grant_mechanism} Application

To Whom It May Concern,

This letter confirms that {data.recipient_institution} is prepared to provide products/services in support of the {data.grant_mechanism} application entitled "{data.project_title}" submitted by {data.pi_name} at {data.pi_institution}.

PRODUCT/SERVICE COMMITMENT:
{product}

{commitment}

PRICING:
Pricing for the committed products/services will be consistent with our standard institutional/government rates and as specified in the budget of the grant application.

TECHNICAL SUPPORT:
We will provide appropriate technical support to ensure successful implementation and use of our products/services within the scope of this project.

{_custom(data)}

We look forward to supporting this important research. Please contact me directly if you require any additional information or documentation.

{_signature(data)}"""


LETTER_TEMPLATES = {
    "support": support_letter,
    "consultant": consultant_letter,
    "vendor": vendor_letter,
}


def render_letter(data: LetterRequest, on: Optional[date] = None) -> str:
    """
    Fill the template for ``data.type``.

    Raises:
        ValidationError: Unknown letter type
    """
    template = LETTER_TEMPLATES.get(data.type)
    if template is None:
        raise ValidationError("Invalid letter type")
    return template(data, on)


async def generate_letter(data: LetterRequest) -> LetterResponse:
    """Render a letter and, if asked, polish it with the LLM."""
    letter = render_letter(data)
    if not data.refine:
        return LetterResponse(letter=letter, type=data.type)

    try:
        refined = await get_llm_client().complete_text(
            REFINE_SYSTEM_PROMPT,
            letter,
            temperature=settings.rewrite_temperature,
        )
    except LLMError as e:
        logger.warning("Letter refinement failed, returning template", letter_type=data.type, error=str(e))
        return LetterResponse(letter=letter, type=data.type)

    refined = refined.strip()
    if not refined:
        return LetterResponse(letter=letter, type=data.type)
    return LetterResponse(letter=refined, type=data.type, refined=True)
