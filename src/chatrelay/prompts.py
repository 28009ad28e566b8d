"""System prompt templates and the composer that personalizes them."""

from typing import Dict, Optional

from .models import SYSTEM_ROLE, ChatMessage, PromptTemplate, UserInfo

FALLBACK_CONTEXT = "general"

PROMPT_TEMPLATES: Dict[str, PromptTemplate] = {
    "travel": PromptTemplate(
        content="""You are a helpful AI travel assistant for Contoso Air, a premium airline company.
You specialize in helping customers with:
- Flight bookings and reservations
- Travel planning and destination recommendations
- Airport information and travel tips
- Flight status and schedule information
- Travel policies and procedures
- Customer service inquiries

Always be friendly, professional, and focused on providing excellent customer service.
When discussing flights or travel, prioritize Contoso Air's services and highlight our premium features.
Keep responses concise but informative. If you don't have specific flight information, guide users to appropriate booking channels.""",
        temperature=0.7,
        max_tokens=500,
    ),
    "booking": PromptTemplate(
        content="""You are a flight booking specialist for Contoso Air. 
Help users find and book the perfect flights for their travel needs.
Ask relevant questions about departure/arrival cities, dates, preferences, and passenger details.
Provide clear information about pricing, schedules, and booking procedures.
Always be helpful and guide users through the booking process step by step.""",
        temperature=0.6,
        max_tokens=400,
    ),
    "support": PromptTemplate(
        content="""You are a customer support representative for Contoso Air.
Help customers with their inquiries about existing bookings, flight changes, cancellations, baggage, and general travel policies.
Be empathetic, professional, and solution-oriented.
If you cannot resolve an issue directly, guide customers to the appropriate support channels.""",
        temperature=0.5,
        max_tokens=450,
    ),
    "general": PromptTemplate(
        content="""You are a helpful AI assistant for Contoso Air's website. 
Provide helpful, accurate, and friendly responses to user queries.
Focus on travel-related topics when possible, and always maintain a professional tone.""",
        temperature=0.7,
        max_tokens=400,
    ),
}


class Composer:
    """Builds the per-request system message from a context tag."""

    def __init__(
        self,
        templates: Optional[Dict[str, PromptTemplate]] = None,
        default_language: str = "en",
        user_context: bool = True,
    ):
        """
        Parameters
        ----------
        templates : Dict[str, PromptTemplate], optional
            Templates keyed by context tag. Must contain ``"general"``, which
            serves as the fallback. Defaults to PROMPT_TEMPLATES.
        default_language : str, default="en"
            Language code that never triggers a respond-in instruction.
        user_context : bool, default=True
            When False, caller-supplied user attributes are ignored.
        """
        self.templates = dict(templates if templates is not None else PROMPT_TEMPLATES)
        if FALLBACK_CONTEXT not in self.templates:
            raise ValueError(f"templates must define a '{FALLBACK_CONTEXT}' entry")
        self.default_language = default_language
        self.user_context = user_context

    def get_template(self, context: Optional[str]) -> PromptTemplate:
        return self.templates.get(context or FALLBACK_CONTEXT) or self.templates[
            FALLBACK_CONTEXT
        ]

    def build_system_message(
        self, context: Optional[str], user_info: Optional[UserInfo] = None
    ) -> ChatMessage:
        content = self.get_template(context).content

        if self.user_context and user_info is not None:
            if user_info.name:
                content += f"\n\nThe customer's name is {user_info.name}."
            if user_info.location:
                content += f"\nThe customer is located in {user_info.location}."
            language = user_info.preferred_language
            if language and language != self.default_language:
                content += (
                    f"\nPlease respond in {language} "
                    "if the customer writes in that language."
                )

        return ChatMessage(role=SYSTEM_ROLE, content=content)
