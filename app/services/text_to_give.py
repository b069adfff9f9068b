"""Text-to-give keyword handling.

Members text a keyword to the church's Twilio number and receive a giving
link back:

- ``GIVE`` / ``G``: link to the giving page
- ``GIVE 50``: link with the amount pre-filled
- ``GIVE 50 MISSIONS`` / ``GIVE MISSIONS``: link with amount and/or fund
- ``FUNDS`` / ``FUND``: list of fund keywords
- ``HELP`` / ``?``: command summary

Replies are rendered as TwiML for Twilio's messaging webhook.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from twilio.twiml.messaging_response import MessagingResponse

ERROR_REPLY = "Sorry, there was an error processing your request. Please try again."
WELCOME_MESSAGE = "Thank you for giving! Here's your personalized giving link:"
HELP_MESSAGE = (
    "Text-to-Give Commands:\n"
    "• GIVE - Get giving link\n"
    "• GIVE 50 - Give $50 to General Fund\n"
    "• GIVE 50 MISSIONS - Give $50 to Missions\n"
    "• FUNDS - List available funds\n"
    "• HELP - Show this message"
)

_AMOUNT = re.compile(r"^\d+(?:\.\d+)?$")


@dataclass(frozen=True)
class Fund:
    keyword: str
    name: str
    id: str


DEFAULT_FUNDS: tuple[Fund, ...] = (
    Fund("tithe", "General Fund", "general"),
    Fund("missions", "Missions Fund", "missions"),
    Fund("building", "Building Fund", "building"),
    Fund("youth", "Youth Ministry", "youth"),
)


def parse_amount(token: str) -> float | None:
    """Parse ``$50``, ``50``, ``1,000.00``; None for anything else or <= 0."""
    cleaned = token.replace("$", "").replace(",", "").strip()
    if not _AMOUNT.match(cleaned):
        return None
    amount = float(cleaned)
    return amount if amount > 0 else None


def _format_amount(amount: float) -> str:
    return str(int(amount)) if amount == int(amount) else str(amount)


def build_giving_url(
    base_url: str,
    amount: float | None = None,
    fund_id: str | None = None,
    phone: str | None = None,
) -> str:
    parts = urlsplit(base_url)
    params = dict(parse_qsl(parts.query))
    if amount:
        params["amount"] = _format_amount(amount)
    if fund_id:
        params["fund"] = fund_id
    if phone:
        params["phone"] = phone
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(params), parts.fragment))


def twiml_reply(message: str) -> str:
    response = MessagingResponse()
    response.message(message)
    return str(response)


class TextToGiveService:
    def __init__(
        self,
        *,
        church_name: str,
        giving_page_url: str,
        default_fund: str = "general",
        funds: tuple[Fund, ...] = DEFAULT_FUNDS,
    ) -> None:
        self.church_name = church_name
        self.giving_page_url = giving_page_url
        self.default_fund = default_fund
        self.funds = funds

    def _find_fund(self, token: str) -> Fund | None:
        return next((f for f in self.funds if f.keyword.upper() == token), None)

    def _default_fund_name(self) -> str:
        fund = next((f for f in self.funds if f.id == self.default_fund), None)
        return fund.name if fund else "General Fund"

    def reply_for(self, body: str, from_phone: str) -> str:
        """Return the plain-text reply for one inbound message."""
        parts = body.strip().upper().split()
        command = parts[0] if parts else ""

        if command in ("HELP", "?"):
            return HELP_MESSAGE

        if command in ("FUNDS", "FUND"):
            fund_list = "\n".join(f"• {f.keyword.upper()} - {f.name}" for f in self.funds)
            return f"Available funds:\n{fund_list}\n\nExample: GIVE 50 MISSIONS"

        if command in ("GIVE", "G"):
            return self._give_reply(parts[1:], from_phone)

        return (
            "Hi! To give, text:\n• GIVE - Get giving link\n• GIVE 50 - Give $50\n"
            f"• HELP - More options\n\n{self.church_name}"
        )

    def _give_reply(self, args: list[str], from_phone: str) -> str:
        amount = parse_amount(args[0]) if args else None
        fund_id, fund_name = self.default_fund, self._default_fund_name()

        # Fund keyword follows the amount, or replaces it; a later match wins
        for token in args[1:2] if amount else args[0:2]:
            fund = self._find_fund(token)
            if fund:
                fund_id, fund_name = fund.id, fund.name

        lines = [WELCOME_MESSAGE, ""]
        if amount:
            lines.append(f"Amount: ${amount:.2f}")
        lines.append(f"Fund: {fund_name}")
        lines.append("")
        lines.append(build_giving_url(self.giving_page_url, amount, fund_id, from_phone))
        return "\n".join(lines)

    def handle(self, body: str, from_phone: str) -> str:
        """TwiML document answering an inbound message."""
        return twiml_reply(self.reply_for(body, from_phone))
