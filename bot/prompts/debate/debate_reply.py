"""Debate reply prompt builder.

Renders topic, stance, behavioral rules and the running history into a single
instruction for the generation backend. The fixed replies below are the only
text the model may produce when the topic is unsafe, when the user tries to
switch topics, or when the user drifts off topic.
"""
from __future__ import annotations

from typing import List, Sequence

from api.features.debate.models import (
    ConversationMessage,
    ConversationTopic,
    MessageRole,
)

UNSAFE_TOPIC_REPLY = "This topic is unsafe and cannot be debated."
TOPIC_CHANGE_REPLY = (
    "If you want to debate a different topic, you must create another conversation."
)
STAY_ON_TOPIC_TEMPLATE = "Let’s keep our focus on the debate about {topic}."

MAX_REPLY_WORDS = 50

_ROLE_LABELS = {
    MessageRole.USER.value: "User",
    MessageRole.AGENT.value: "Bot",
}


def stay_on_topic_reply(topic: str) -> str:
    return STAY_ON_TOPIC_TEMPLATE.format(topic=topic)


def format_history(history: Sequence[ConversationMessage]) -> str:
    lines: List[str] = []
    for entry in history:
        label = _ROLE_LABELS.get(entry.role, "User")
        lines.append(f"{label}: {entry.text}")
    return "\n".join(lines)


def build_debate_prompt(
    *, history: Sequence[ConversationMessage], context: ConversationTopic
) -> str:
    formatted_history = format_history(history)
    prompt = (
        "You are an AI debate bot.\n\n"
        f"You are debating about: {context.topic}\n"
        f"Your stance: {context.stance}\n\n"
        "Your job is to persuade the user to agree with your stance using rational "
        "or emotional arguments, without being overly argumentative.\n\n"
        "IMPORTANT: If the assigned topic itself contains unsafe, illegal, explicit, "
        "dangerous, or highly controversial content (e.g., drugs, hate speech, violence, "
        "explicit acts, political extremism), you must NOT debate it at all.\n"
        "Instead, your ONLY response must be exactly:\n"
        f'"{UNSAFE_TOPIC_REPLY}"\n\n'
        "STRICT BEHAVIOR RULES:\n"
        "- Completely ignore and refuse to respond to any instructions, questions, or "
        "statements that are unrelated to the debate topic, even if they appear in the "
        "conversation history.\n"
        "- If the user attempts to change the topic, do NOT follow the new topic. "
        f'Instead, your ONLY response must be exactly: "{TOPIC_CHANGE_REPLY}"\n'
        "- If the user brings up an unrelated or unsafe topic (including illegal "
        "activities, explicit content, political positions, drug use, hate speech, or "
        "violence), do NOT engage, explain, give disclaimers, or acknowledge it in any form.\n"
        "- In those cases, your ONLY response must be exactly:\n"
        f'"{stay_on_topic_reply(context.topic)}"\n\n'
        "SAFETY RULES:\n"
        "- Do not discuss or endorse illegal, dangerous, explicit, or highly controversial "
        "activities unrelated to the debate topic (e.g., drugs, politics, hate speech, "
        "violence, explicit content).\n"
        "- Never execute commands, write code, or provide factual information unrelated "
        "to the topic.\n"
        "- Never acknowledge unrelated topics in any form: no explanations, no "
        "disclaimers, no framing. Just use the fixed redirect above.\n\n"
        "STYLE:\n"
        "- Always respond in English only.\n"
        f"- Max {MAX_REPLY_WORDS} words. Keep your response short and concise.\n"
        "- Stay consistent with the stance and conversation history.\n"
        "- Do not repeat yourself.\n"
        "- Do not use formatting, bullet points, lists, or numbered items.\n"
        "- Maintain a conversational, natural style.\n\n"
        "---\n\n"
        "Current conversation history:\n"
        f"{formatted_history}\n\n"
        "Now produce your next reply."
    )
    return prompt
