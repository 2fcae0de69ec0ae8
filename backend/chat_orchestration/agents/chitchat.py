"""
Chitchat Agent - Greetings, store policies and customer service info.

All tools answer from static store information; nothing here touches the
commerce services.
"""

from typing import Any, Dict, List

from ..classifier import AgentType
from ..models import ToolDefinition, TurnContext
from .base import DomainAgent

SYSTEM_PROMPT = """You are a friendly customer service assistant for an e-commerce store. Your role is to engage
in general conversation, answer questions, and provide helpful information.

You can help with:
- General greetings and pleasantries
- Store policies (shipping, returns, payment methods)
- General product questions
- Recommendations and suggestions
- Troubleshooting and support

Your personality:
- Friendly and approachable
- Professional but conversational
- Patient and understanding
- Knowledgeable about the store

Important guidelines:
- For specific product searches, suggest the customer ask about products
- For cart management or orders, suggest they ask about their basket
- For policy questions, use the get_store_policy tool
- Keep responses concise but helpful

If you don't know something specific, be honest and offer to help find the information
or direct them to the right resource.
"""

STORE_POLICIES: Dict[str, Dict[str, str]] = {
    "shipping": {
        "title": "Shipping Policy",
        "content": (
            "We offer several shipping options:\n\n"
            "- Standard Shipping (5-7 business days): $5.99\n"
            "- Express Shipping (2-3 business days): $12.99\n"
            "- Overnight Shipping (1 business day): $24.99\n"
            "- Free Standard Shipping on orders over $50\n\n"
            "We ship internationally to select countries.\n"
            "Orders are processed within 1-2 business days.\n"
        ),
    },
    "returns": {
        "title": "Return Policy",
        "content": (
            "We accept returns within 30 days of purchase.\n\n"
            "- Items must be unused and in original packaging\n"
            "- Return shipping is free for defective items\n"
            "- Refunds processed within 5-7 business days\n"
            "- Original shipping costs are non-refundable\n"
            "- Sale items are final sale\n\n"
            "To initiate a return, contact customer service with your order number.\n"
        ),
    },
    "payment": {
        "title": "Payment Methods",
        "content": (
            "We accept the following payment methods:\n\n"
            "- Credit Cards (Visa, Mastercard, American Express, Discover)\n"
            "- Debit Cards\n"
            "- PayPal\n"
            "- Apple Pay\n"
            "- Google Pay\n"
            "- Shop Pay\n\n"
            "All transactions are secure and encrypted.\n"
        ),
    },
    "privacy": {
        "title": "Privacy Policy",
        "content": (
            "We respect your privacy and protect your personal information.\n\n"
            "- We never sell your data to third parties\n"
            "- Information is used only for order processing and customer service\n"
            "- You can request data deletion at any time\n"
            "- We use cookies to improve your shopping experience\n\n"
            "For full details, see our complete Privacy Policy on our website.\n"
        ),
    },
    "terms": {
        "title": "Terms of Service",
        "content": (
            "By using our store, you agree to:\n\n"
            "- Provide accurate information\n"
            "- Use the site lawfully\n"
            "- Respect intellectual property rights\n"
            "- Accept our return and refund policies\n\n"
            "We reserve the right to refuse service or cancel orders.\n"
            "For complete terms, visit our Terms of Service page.\n"
        ),
    },
}

CUSTOMER_SERVICE_PHONE = "1-800-SHOP-NOW"
CUSTOMER_SERVICE_EMAIL = "support@example.com"

STORE_HOURS = {
    "hours": {
        "monday": "9:00 AM - 9:00 PM EST",
        "tuesday": "9:00 AM - 9:00 PM EST",
        "wednesday": "9:00 AM - 9:00 PM EST",
        "thursday": "9:00 AM - 9:00 PM EST",
        "friday": "9:00 AM - 10:00 PM EST",
        "saturday": "10:00 AM - 10:00 PM EST",
        "sunday": "10:00 AM - 8:00 PM EST",
    },
    "customer_service": {
        "phone": CUSTOMER_SERVICE_PHONE,
        "email": CUSTOMER_SERVICE_EMAIL,
        "chat": "Available 24/7",
    },
    "timezone": "Eastern Standard Time (EST)",
}

PAYMENT_METHODS = {
    "credit_cards": ["Visa", "Mastercard", "American Express", "Discover"],
    "digital_wallets": ["PayPal", "Apple Pay", "Google Pay", "Shop Pay"],
    "other": ["Debit Cards"],
    "security": {"encryption": "256-bit SSL", "pci_compliant": True, "fraud_protection": True},
    "note": "All transactions are secure and encrypted",
}

CONTACT_INFO = {
    "customer_service": {
        "phone": CUSTOMER_SERVICE_PHONE,
        "email": CUSTOMER_SERVICE_EMAIL,
        "hours": "Monday-Friday 9AM-9PM EST, Saturday-Sunday 10AM-8PM EST",
    },
    "live_chat": {"available": True, "hours": "24/7"},
    "social_media": {"facebook": "@shopexample", "twitter": "@shopexample", "instagram": "@shopexample"},
    "mailing_address": {
        "street": "123 Commerce Street",
        "city": "New York",
        "state": "NY",
        "zip": "10001",
        "country": "USA",
    },
    "response_time": "We typically respond within 24 hours",
}


def handle_get_store_policy(arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
    policy_type = str(arguments.get("policy_type") or "").strip().lower()
    policy = STORE_POLICIES.get(policy_type)
    if policy is None:
        return {"error": "Unknown policy type", "available_types": list(STORE_POLICIES)}
    return dict(policy)


def handle_get_store_hours(arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
    return STORE_HOURS


def handle_get_payment_methods(arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
    return PAYMENT_METHODS


def handle_get_contact_info(arguments: Dict[str, Any], context: TurnContext) -> Dict[str, Any]:
    return CONTACT_INFO


class ChitchatAgent(DomainAgent):
    """General conversation and store information."""

    name = "chitchat_assistant"
    agent_type = AgentType.CHITCHAT

    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def tool_definitions(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                "get_store_policy",
                "Get information about store policies (shipping, returns, payment, etc.)",
                {
                    "policy_type": {
                        "type": "string",
                        "description": "Type of policy (shipping, returns, payment, privacy, terms)",
                        "enum": list(STORE_POLICIES),
                    }
                },
                ("policy_type",),
            ),
            ToolDefinition("get_store_hours", "Get store operating hours and contact information"),
            ToolDefinition("get_payment_methods", "Get list of accepted payment methods"),
            ToolDefinition("get_contact_info", "Get customer service contact information"),
        ]

    def register_tools(self) -> None:
        self.agent.register_tool("get_store_policy", handle_get_store_policy, "Looking up store policy")
        self.agent.register_tool("get_store_hours", handle_get_store_hours, "Checking store hours")
        self.agent.register_tool("get_payment_methods", handle_get_payment_methods, "Checking payment options")
        self.agent.register_tool("get_contact_info", handle_get_contact_info, "Finding contact details")
