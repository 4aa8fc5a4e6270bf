# cad_core/insights.py
"""Coaching text around a scored assessment.

Every generator asks the configured LLM first and falls back to canned copy
when the backend is disabled or anything goes wrong, so callers always get a
usable answer and never see the collaborator's failure.
"""
from __future__ import annotations
import logging, random
from typing import Any, Dict, List, Mapping, Optional, Sequence

from . import llm_bridge
from .types import (
    QUADRANT_PROFILES,
    CADAssessmentResult,
    DashboardInsight,
    PersonalizedInsights,
    QuadrantLevel,
    Response,
)

log = logging.getLogger(__name__)

COACH_SYSTEM = (
    "You are an expert career coach specializing in the CAD Diagnostic framework. "
    "Help professionals transition from Point A (potential) to Point B (power) through "
    "\"un-outsourcing\" their development."
)

_FALLBACK_INSIGHTS: Dict[int, PersonalizedInsights] = {
    1: PersonalizedInsights(
        summary=(
            "You're at Q1 (The New Traveler), the starting point of your transformation journey. "
            "This is where 'un-outsourcing' begins - recognizing your potential while building the "
            "foundations to achieve it. You're ready to move from passenger to pilot."
        ),
        strengths=[
            "Self-awareness of where you are in your journey",
            "Willingness to grow and transform",
            "Open to building new systems and structures",
        ],
        areas_for_growth=[
            "Develop internal command and confidence",
            "Establish consistent systems and routines",
            "Clarify your unique strengths and direction",
        ],
        action_steps=[
            "Complete daily reflection to build self-awareness (Capability pillar)",
            "Create one simple system for your most important task",
            "Identify your top 3 natural strengths through assessment",
            "Find an accountability partner to support your growth",
        ],
        motivational_message=(
            "Every master started at Q1. Your awareness is the first spark of transformation - now "
            "it's time to build the fire. From passenger to Pilot starts here!"
        ),
    ),
    2: PersonalizedInsights(
        summary=(
            "You're at Q2 (The Steady Support), following Route A: System-First. You've built strong "
            "external structures and processes. The next step is developing internal command to match "
            "your systematic excellence and reach Q4 (Systemic Leverage Peak)."
        ),
        strengths=[
            "Strong systems and consistent execution",
            "Reliable performance within structures",
            "Foundation built for next-level growth",
        ],
        areas_for_growth=[
            "Develop authentic internal confidence and command",
            "Move from following systems to innovating within them",
            "Trust your instincts alongside your processes",
        ],
        action_steps=[
            "Practice making decisions based on intuition, not just data",
            "Lead a project where you design the system yourself",
            "Develop your unique voice and perspective in your field",
            "Build Character pillar through navigating ambiguous challenges",
        ],
        motivational_message=(
            "You've mastered the 'system' part of success. Now un-outsource your power by adding "
            "command. Q4 awaits when structure meets authentic leadership!"
        ),
    ),
    3: PersonalizedInsights(
        summary=(
            "You're at Q3 (The Independent Starter), following Route B: Command-First. You have natural "
            "talent and confidence, but building systems will amplify your impact. Your journey to Q4 "
            "(Systemic Leverage Peak) requires systematizing your brilliance."
        ),
        strengths=[
            "Natural command and confidence in your abilities",
            "Strong instincts and decision-making capability",
            "Raw talent ready to be structured and scaled",
        ],
        areas_for_growth=[
            "Document and systematize your natural processes",
            "Build repeatable frameworks around your success",
            "Create leverage through structure and delegation",
        ],
        action_steps=[
            "Document your decision-making process for one key task",
            "Create a simple framework others can follow for your best work",
            "Build one automated system to handle routine work",
            "Develop Competence pillar by teaching your method to someone else",
        ],
        motivational_message=(
            "You have the spark - now build the engine. Un-outsourcing means packaging your genius "
            "into systems that multiply your impact. Q4 is one framework away!"
        ),
    ),
    4: PersonalizedInsights(
        summary=(
            "You've reached Q4 (Systemic Leverage Peak / Point B) - the integration of Command and "
            "System across all 3Cs plus Capacity. You've successfully 'un-outsourced' your development. "
            "You're a Pilot, not a passenger. Now it's time to multiply impact and guide others."
        ),
        strengths=[
            "Full command of your unique capabilities",
            "Robust systems that amplify your strengths",
            "Proven track record of consistent excellence",
        ],
        areas_for_growth=[
            "Expand your capacity to mentor and develop others",
            "Build movements and communities around your expertise",
            "Define and execute your legacy vision",
        ],
        action_steps=[
            "Mentor 2-3 people through their Q1→Q4 journey",
            "Share your frameworks through content, speaking, or teaching",
            "Build a community or platform that scales your impact",
            "Document your CAD journey to inspire the next generation",
        ],
        motivational_message=(
            "You've completed the journey from Point A to Point B. Your success is now a launchpad for "
            "others' transformation. Lead the way and multiply the impact!"
        ),
    ),
}

_DASHBOARD_FALLBACKS: Dict[int, DashboardInsight] = {
    0: DashboardInsight(
        recommendation=(
            "Every expert was once a beginner. The fact that you're here means you're already ahead "
            "of most people who never take the first step."
        ),
        action_step=(
            "Take the free 5-minute diagnostic to discover your starting point. No wrong answers, "
            "just clarity."
        ),
        reflection=(
            "Clarity beats motivation. Most people stay stuck not because they lack drive, but because "
            "they don't know where to direct it."
        ),
    ),
    1: DashboardInsight(
        recommendation=(
            "You're at the beginning of something powerful. Focus on building one core skill deeply "
            "rather than spreading yourself thin."
        ),
        action_step="Pick one skill from your assessment and dedicate 30 minutes daily to it this week.",
        reflection=(
            "The gap between where you are and where you want to be is simply a system. Start "
            "documenting what works for you."
        ),
    ),
    2: DashboardInsight(
        recommendation=(
            "You have both awareness and structure working for you. Your next step is building "
            "independence and internal command."
        ),
        action_step="Identify one area where you've been waiting for approval and take ownership of it today.",
        reflection=(
            "Your system is your superpower, but don't let it become a crutch. The leaders who break "
            "through can operate with and without structure."
        ),
    ),
    3: DashboardInsight(
        recommendation=(
            "You've got command but no system to scale it. You're making things happen, but you're "
            "probably burning energy that could be automated."
        ),
        action_step="Write down the 3 tasks you repeat most. Find a way to template or automate at least one this week.",
        reflection=(
            "Your independence is a strength, but sustainable success requires building systems "
            "around yourself."
        ),
    ),
    4: DashboardInsight(
        recommendation=(
            "You're operating at the highest level. Your focus now should be on legacy: mentoring "
            "others and expanding your impact beyond yourself."
        ),
        action_step="Reach out to one person who's earlier in their journey and offer to share what you've learned.",
        reflection=(
            "At your level, the biggest risk is complacency. Stay hungry by setting a goal in a "
            "completely new domain."
        ),
    ),
}

_CAREER_RESPONSES: Dict[str, List[str]] = {
    "career": [
        "Focus on building your Capability first - understand your unique strengths and how they create "
        "value. The 3PN framework emphasizes that self-knowledge is the foundation of all career growth.",
        "Consider where you are in the CAD quadrant. If you're in Q1 or Q2, focus on building systems. If "
        "you're in Q3, focus on systematizing your natural talents. Q4 is about multiplying your impact.",
    ],
    "skills": [
        "The 3PN framework groups skills into four pillars: Capability (knowing yourself), Competence "
        "(doing the work), Character (being trustworthy), and Capacity (scaling your impact). Focus on the "
        "pillar where you scored lowest.",
        "Start with one skill at a time. Build a system around practicing it daily. Track your progress "
        "weekly. This is the 'System-First' approach from the CAD framework.",
    ],
    "confidence": [
        "Confidence comes from Command - the internal state in the CAD framework. Build it through "
        "consistent small wins, reflection on your strengths, and progressive challenges.",
        "Remember the un-outsourcing philosophy: you already have the potential (Point A). Building "
        "confidence means recognizing you're the Pilot, not a passenger. Start with what you already know "
        "you're good at.",
    ],
    "mentor": [
        "A good mentor helps you move from your current quadrant toward Q4 (Mastery). Look for someone who "
        "has both Command AND System in the areas where you want to grow.",
        "The 3PN network connects professionals at different stages. Reach out to people one quadrant "
        "ahead of you - they understand your current challenges best.",
    ],
    "default": [
        "That's a great question! The 3PN framework emphasizes 'un-outsourcing' - taking control of your "
        "own development journey. Start by understanding where you are in the CAD quadrant (take our "
        "assessment if you haven't), then focus on building both Command (internal confidence) and "
        "System (external structures).",
        "Every career journey is unique, but the CAD framework gives you a compass. Focus on your weakest "
        "pillar among Capability, Competence, Character, and Capacity. Build one small system this week "
        "to practice improvement.",
    ],
}

_TOPIC_KEYWORDS: List[tuple[str, tuple[str, ...]]] = [
    ("career", ("career", "job", "work", "profession")),
    ("skills", ("skill", "learn", "develop", "grow")),
    ("confidence", ("confiden", "afraid", "doubt", "unsure")),
    ("mentor", ("mentor", "coach", "guide", "network")),
]

_PILLAR_NUDGES: Dict[str, List[str]] = {
    "Capability": [
        "Knowing yourself is the foundation. Every great leader started by understanding their own wiring.",
        "Oprah once said she succeeded because she became genuinely curious about herself first. "
        "Self-awareness is your starting advantage.",
        "You're building your internal compass. That clarity will guide every decision ahead.",
    ],
    "Competence": [
        "Skills are built, not born. Every expert was once a beginner who refused to stop practising.",
        "Kobe Bryant wasn't the most talented player in his draft class. But his obsession with "
        "skill-building made him legendary.",
        "Competence is the bridge between potential and performance. You're laying down the planks right now.",
    ],
    "Character": [
        "Character is what you do when no one is watching. It's the pillar that holds everything else up.",
        "Chimamanda Ngozi Adichie built her career on authenticity, not trends. Character compounds over time.",
        "Trust is earned in drops and lost in buckets. Your character answers are shaping the most "
        "important pillar.",
    ],
    "Capacity": [
        "Capacity is about scaling yourself. It's not just what you can do, but how far your impact reaches.",
        "Jay-Z went from selling out concerts to building Roc Nation. The difference? He learned to "
        "multiply his capacity.",
        "You're thinking about leverage now. That's the shift from doing more to achieving more.",
    ],
}


def _quadrant_label(q: int) -> str:
    p = QUADRANT_PROFILES.get(QuadrantLevel(q)) if q in (1, 2, 3, 4) else None
    return f"Q{q} ({p.name}: {p.subtitle})" if p else f"Q{q}"


def fallback_insights(quadrant: int) -> PersonalizedInsights:
    base = _FALLBACK_INSIGHTS.get(int(quadrant), _FALLBACK_INSIGHTS[1])
    # hand out a copy so callers can't mutate the canned lists
    return PersonalizedInsights(
        summary=base.summary,
        strengths=list(base.strengths),
        areas_for_growth=list(base.areas_for_growth),
        action_steps=list(base.action_steps),
        motivational_message=base.motivational_message,
    )


def build_insights_prompt(result: CADAssessmentResult, name: Optional[str] = None) -> str:
    pillars = "\n".join(f"- {p.value}: {s}/80" for p, s in result.pillar_scores.items())
    dist = ", ".join(f"Q{int(q)}: {n} responses" for q, n in result.quadrant_counts.items())
    frameworks = "\n".join(
        f"- Q{int(q)} ({p.name}): {p.subtitle}" for q, p in QUADRANT_PROFILES.items()
    )
    return f"""You are a professional career coach specializing in the CAD Diagnostic framework (Capability, Competence, Character, Capacity). Based on an assessment, provide personalized insights.

CAD Assessment Results:
- Dominant Quadrant: Q{int(result.dominant_quadrant)}
- Strategic Pathway: {result.strategic_pathway.value}
- Readiness for Mastery: {result.readiness_for_q4:.1f}%
- Internal Leverage (Command): {result.internal_leverage:.1f}%
- External System: {result.external_system:.1f}%
- User Name: {name or 'Participant'}

Quadrant Framework:
{frameworks}

The 3PN Philosophy:
"Un-outsourcing" means transitioning from being a passenger to being a Pilot - moving from Point A (potential) to Point B (power).

Pillar Scores:
{pillars}

Response Distribution:
{dist}

Return ONLY a JSON object with these exact keys:
- "summary": a warm, encouraging summary (2-3 sentences) explaining their quadrant position
- "strengths": array of 3 key strengths they demonstrated
- "areasForGrowth": array of 3 specific areas for growth toward Q4
- "actionSteps": array of 4 actionable next steps for their strategic pathway
- "motivationalMessage": a motivational message (1-2 sentences) using the "un-outsourcing" philosophy"""


def _str_list(value: Any, key: str) -> List[str]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"insight field {key!r} must be a non-empty list")
    return [str(v) for v in value]


def parse_insights(data: Mapping[str, Any]) -> PersonalizedInsights:
    summary = data.get("summary")
    message = data.get("motivationalMessage")
    if not isinstance(summary, str) or not summary.strip():
        raise ValueError("insight field 'summary' missing")
    if not isinstance(message, str) or not message.strip():
        raise ValueError("insight field 'motivationalMessage' missing")
    return PersonalizedInsights(
        summary=summary.strip(),
        strengths=_str_list(data.get("strengths"), "strengths"),
        areas_for_growth=_str_list(data.get("areasForGrowth"), "areasForGrowth"),
        action_steps=_str_list(data.get("actionSteps"), "actionSteps"),
        motivational_message=message.strip(),
    )


def generate_personalized_insights(
    result: CADAssessmentResult,
    responses: Sequence[Response],
    name: Optional[str] = None,
) -> PersonalizedInsights:
    """Coaching insights for a scored assessment, falling back per dominant quadrant."""
    try:
        data = llm_bridge.complete_json(COACH_SYSTEM, build_insights_prompt(result, name), kind="insights")
        return parse_insights(data)
    except llm_bridge.LLMUnavailable:
        pass
    except Exception as exc:
        log.warning("insight generation failed, using fallback: %s", exc)
    return fallback_insights(int(result.dominant_quadrant))


def generate_dashboard_insight(
    quadrant: Optional[int] = None,
    pathway: Optional[str] = None,
    pillar_scores: Optional[Mapping[str, int]] = None,
    name: Optional[str] = None,
) -> DashboardInsight:
    """Fresh dashboard card; ``quadrant=None`` means the user has no assessment yet."""
    q = int(quadrant) if quadrant in (1, 2, 3, 4) else 0
    fallback = _DASHBOARD_FALLBACKS[q]
    if q:
        scores = ", ".join(f"{k}: {v}/80" for k, v in (pillar_scores or {}).items()) or "Not available"
        prompt = (
            "Generate a fresh, personalised dashboard insight for this user.\n\n"
            f"User: {name or 'Professional'}\n"
            f"Their Quadrant: {_quadrant_label(q)}\n"
            f"Pathway: {pathway or 'Not specified'}\n"
            f"Pillar Scores: {scores}\n\n"
            "Rules:\n- Be warm but direct. No fluff.\n- Reference their specific quadrant situation\n"
            "- If a pillar score is notably low, address it specifically\n- Keep it under 60 words per field\n"
            "- Don't use em dashes\n\n"
        )
    else:
        prompt = (
            f"Generate a motivating dashboard insight for a new user named {name or 'there'} who hasn't "
            "taken their assessment yet.\n\n"
            "Rules:\n- Be warm but direct. No fluff.\n- Motivate them to take the free 5-minute diagnostic\n"
            "- Keep it under 60 words per field\n- Don't use em dashes\n\n"
        )
    prompt += 'Return ONLY valid JSON with exactly these keys: "recommendation", "actionStep", "reflection".'
    try:
        data = llm_bridge.complete_json(
            "You are a sharp, insightful AI career coach for the 3PN platform.",
            prompt, kind="dashboard", temperature=0.9, max_tokens=300,
        )
        return DashboardInsight(
            recommendation=str(data["recommendation"]),
            action_step=str(data["actionStep"]),
            reflection=str(data["reflection"]),
        )
    except llm_bridge.LLMUnavailable:
        pass
    except Exception as exc:
        log.warning("dashboard insight failed, using fallback: %s", exc)
    return DashboardInsight(fallback.recommendation, fallback.action_step, fallback.reflection)


def canned_guidance(question: str, rng: Optional[random.Random] = None) -> str:
    q = (question or "").lower()
    topic = "default"
    for name, words in _TOPIC_KEYWORDS:
        if any(w in q for w in words):
            topic = name
            break
    return (rng or random).choice(_CAREER_RESPONSES[topic])


def generate_career_guidance(
    question: str,
    quadrant: Optional[int] = None,
    pathway: Optional[str] = None,
    name: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    lines = [
        "You are a supportive career coach for young professionals in the 3PN (Prepare, Progress, and "
        "Prosper Network) program.",
        "",
        "Your role is to:",
        "- Provide actionable, practical career advice",
        "- Be encouraging and supportive",
        "- Keep responses concise (2-3 paragraphs)",
        "- Reference the CAD Diagnostic framework when relevant: Capability → Competence → Character → Capacity",
        "- Emphasize the \"un-outsourcing\" philosophy: transitioning from passenger to Pilot (Point A to Point B)",
        "- Understand the quadrant system: "
        + ", ".join(f"Q{int(k)} ({p.name})" for k, p in QUADRANT_PROFILES.items()),
    ]
    if quadrant:
        lines.append(f"- The user is currently in Q{int(quadrant)}")
    if pathway:
        lines.append(f"- Their strategic pathway is: {pathway}")
    if name:
        lines.append(f"- Address them as {name}")
    try:
        text = llm_bridge.complete_text("\n".join(lines), question, kind="guidance", max_tokens=500)
        if text:
            return text
    except llm_bridge.LLMUnavailable:
        pass
    except Exception as exc:
        log.warning("career guidance failed, using canned reply: %s", exc)
    return canned_guidance(question, rng)


def generate_assessment_nudge(
    question_number: int,
    total_questions: int,
    pillar: str,
    quality: str,
    chosen_label: str,
) -> str:
    """One short reflection after an answer; ``question_number`` is zero-based."""
    pool = _PILLAR_NUDGES.get(pillar) or _PILLAR_NUDGES["Capability"]
    fallback = pool[question_number % len(pool)]
    prompt = (
        f"They just answered question {question_number + 1} of {total_questions}.\n"
        f"Pillar: {pillar}\nQuality being measured: {quality}\nTheir answer: \"{chosen_label}\"\n\n"
        "Write ONE short reflection (max 2 sentences, under 30 words total). Be specific to what they "
        "chose. Never use em dashes."
    )
    if question_number + 1 > 15:
        prompt += " Add encouragement about being close to finishing."
    prompt += " Return ONLY the reflection text, no quotes, no JSON."
    try:
        text = llm_bridge.complete_text(
            "You are a warm, sharp AI coach guiding someone through a career assessment on the 3PN platform.",
            prompt, kind="nudge", temperature=1.0, max_tokens=60,
        )
        return text or fallback
    except llm_bridge.LLMUnavailable:
        return fallback
    except Exception as exc:
        log.debug("nudge fallback: %s", exc)
        return fallback
