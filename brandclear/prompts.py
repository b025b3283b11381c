import json
from typing import List

from .schemas import FailureFeedback, PreferenceSummary

NAMING_GUIDELINES = """
### NAMING REQUIREMENTS
1. **Distinctiveness**: every name MUST sit at Suggestive, Arbitrary, or Fanciful on the Abercrombie spectrum.
   Generic and Descriptive names are NEVER acceptable.
2. **SMILE**: Suggestive, Memorable, Imagery, Legs (room for brand extensions), Emotional.
3. **Avoid SCRATCH**: Spelling challenges, Copycat resemblance to famous brands, Restrictive scope,
   Annoying puns, Tame blandness, Curse of knowledge, Hard-to-pronounce combinations.
4. **Domain viability**: a single word or natural compound, no hyphens or punctuation, ideally under 12 characters.
5. **Diversity**: mix coined words, evocative real words, and creative compounds as the profile recommends.
6. **Pronounceability**: easy to say aloud and to spell after hearing it once.
"""

NAME_OUTPUT_FORMAT = """
### OUTPUT FORMAT
Return a JSON object: {"names": [ ... ]}. Each entry MUST contain:
- name: the name itself, clean, no punctuation
- rationale: how the name connects to the brand vision
- distinctiveness_category: one of "suggestive", "arbitrary", "fanciful"
- relevance_to_input: how it relates to the stated preferences
- linguistic_notes: etymology, phonetics, syllable count, multilingual notes
"""


def build_analysis_prompt(user_text: str) -> str:
    return f"""You are a brand naming strategist and trademark consultant. You know the Abercrombie spectrum
(Generic -> Descriptive -> Suggestive -> Arbitrary -> Fanciful), the SMILE framework, and the Nice classification
used by the USPTO.

Analyze the business description below and return a JSON object with these fields:
- industry: industry or market sector
- target_audience: who the customers are
- brand_personality: list of attributes the brand should convey
- naming_style_recommendation: the mix of suggestive / arbitrary / fanciful names that fits, with reasons
- avoid_patterns: sounds, styles, or approaches to steer away from
- desired_tone: the emotional register of the name
- uspto_classes: list of {{"class_number": int, "class_name": str, "rationale": str}} for every applicable class
  (software usually means 9 and 42; consider 35, 38, 41 where relevant)
- key_themes: concepts to explore during generation
- summary: a readable 2-3 paragraph summary of all of the above

Business description:
{user_text}
"""


def build_generation_prompt(
    preference_summary: PreferenceSummary,
    interview_insights: str,
    count: int,
) -> str:
    return f"""You are a world-class brand naming expert. Generate exactly {count} unique brand name candidates.

### PREFERENCE PROFILE
{json.dumps(preference_summary.model_dump(), indent=2)}

### INTERVIEW INSIGHTS
{interview_insights or "None provided."}
{NAMING_GUIDELINES}{NAME_OUTPUT_FORMAT}"""


def build_replacement_prompt(
    preference_summary: PreferenceSummary,
    interview_insights: str,
    failed_names: List[FailureFeedback],
    existing_names: List[str],
    count: int,
) -> str:
    failed_lines = "\n".join(f'- "{f.name}": {f.reason}' for f in failed_names) or "- none"
    return f"""You are a world-class brand naming expert. Generate exactly {count} replacement brand name candidates.

### PREFERENCE PROFILE
{json.dumps(preference_summary.model_dump(), indent=2)}

### INTERVIEW INSIGHTS
{interview_insights or "None provided."}

### ALREADY USED (never repeat any of these)
{", ".join(existing_names) or "none"}

### REJECTED NAMES (avoid whatever made these fail)
{failed_lines}
{NAMING_GUIDELINES}{NAME_OUTPUT_FORMAT}"""


def build_web_search_assessment_prompt(candidate_name: str, search_results: str, industry: str) -> str:
    return f"""You are a trademark clearance specialist deciding whether a proposed brand name collides with an existing business.

Proposed name: "{candidate_name}"
Industry: {industry or "unspecified"}

Search results:
{search_results}

CONFLICT RELEVANCE RULES:
1. An existing company, brand, product, or service with the same or a very similar name (one letter off, same
   pronunciation) in the SAME or an ADJACENT industry IS a conflict.
2. People's names, dictionary words used in articles, small blogs, and businesses in unrelated sectors
   (a restaurant vs. a software product) are NOT conflicts.
3. When industry overlap is unclear, give the name the benefit of the doubt.

Return JSON: {{"has_conflict": bool, "assessment": str, "conflicting_entities": [str]}}
List in conflicting_entities only the entities that are real conflicts."""


def build_ai_score_adjustment_prompt(
    name: str,
    algorithmic_score: int,
    distinctiveness_category: str,
    trademark_conflicts: int,
    web_search_details: str,
    domain_available: bool,
) -> str:
    return f"""You are an IP scoring specialist reviewing an automated trademarkability assessment.

Name: "{name}"
Algorithmic Score: {algorithmic_score}/100
Distinctiveness Category: {distinctiveness_category}
Trademark Conflicts Found: {trademark_conflicts}
Web Search Assessment: {web_search_details or "n/a"}
Domain Available: {domain_available}

Adjust the score by an integer between -10 and +10. Consider whether the number fairly reflects the name's real
trademark strength, and any nuance the formula misses (resemblance to a common phrase, unexpected strength,
awkward connotations).

Return JSON: {{"adjustment": int, "reasoning": "one or two sentences"}}"""
