"""
Heuristic subject line scoring.

Pure functions of the subject text and industry: no I/O, no state.
"""

from typing import List, Tuple

from subject_analyzer.business.industries import Industry, get_industry_keywords


BASE_SCORE = 50
OPTIMAL_MIN_LENGTH = 30
OPTIMAL_MAX_LENGTH = 50

URGENCY_WORDS = ("now", "today", "limited", "exclusive", "urgent", "act fast")
ACTION_WORDS = ("get", "grab", "claim", "unlock", "discover", "try", "start")
SCORE_OVERUSED_PHRASES = ("click here", "don't miss", "act now", "limited time")
ISSUE_OVERUSED_PHRASES = SCORE_OVERUSED_PHRASES + ("hurry",)
GENERIC_WORDS = ("amazing", "incredible", "fantastic", "awesome", "great")
PERSONAL_WORDS = ("you", "your", "personalized", "custom")


def _contains_any(text: str, words) -> bool:
    return any(word in text for word in words)


def calculate_score(subject: str, industry: Industry) -> int:
    """Score a subject line from 0 to 100."""
    lowered = subject.lower()
    score = BASE_SCORE

    if len(subject) < OPTIMAL_MIN_LENGTH:
        score += 10
    elif len(subject) > OPTIMAL_MAX_LENGTH:
        score -= 10

    keywords = [keyword.lower() for keyword in get_industry_keywords(industry)]
    if _contains_any(lowered, keywords):
        score += 15

    if _contains_any(lowered, URGENCY_WORDS):
        score += 10
    if _contains_any(lowered, ACTION_WORDS):
        score += 10

    if _contains_any(lowered, SCORE_OVERUSED_PHRASES):
        score -= 20

    return max(0, min(100, score))


def identify_issues(subject: str, industry: Industry) -> List[str]:
    """List the weaknesses found in a subject line."""
    lowered = subject.lower()
    issues: List[str] = []

    if len(subject) < 20:
        issues.append("too short")
    if len(subject) > 60:
        issues.append("too long")
    if len(subject) < OPTIMAL_MIN_LENGTH or len(subject) > OPTIMAL_MAX_LENGTH:
        issues.append("suboptimal length")

    if _contains_any(lowered, ISSUE_OVERUSED_PHRASES):
        issues.append("overused phrase")
    if _contains_any(lowered, GENERIC_WORDS):
        issues.append("too generic")
    if not _contains_any(lowered, PERSONAL_WORDS):
        issues.append("lacks personalization")

    return issues


def score_subject(subject: str, industry: Industry) -> Tuple[int, List[str]]:
    """Score and issues in one call."""
    return calculate_score(subject, industry), identify_issues(subject, industry)
