"""Prompt for the LLM substantive rating pass."""

FRAME_DESCRIPTIONS = {
    "economic": "economic benefits of green energy",
    "moral": "moral responsibility and environmental stewardship",
}

RATING_PROMPT = '''
You are validating a survey vignette for an experiment on climate policy framing.

VIGNETTE:
"""
{text}
"""

INTENDED FRAME: {frame} ({frame_description})
INTENDED POLICY: {policy}

Rate each dimension 1-7 (1=not at all, 7=extremely):

1. ECONOMIC_EMPHASIS: Does the vignette emphasize economic benefits (jobs, savings, growth)?
2. MORAL_EMPHASIS: Does the vignette emphasize moral/ethical considerations (responsibility, stewardship)?
3. POLICY_MATCH: Does the vignette focus on the intended policy topic ({policy})?
4. NEUTRALITY: Is the tone neutral and journalistic (not advocacy)?
5. PARTISAN_CUES: Does the vignette contain partisan cues or politician names? (1=many, 7=none)

Return ONLY valid JSON (no markdown):
{"economic_emphasis": N, "moral_emphasis": N, "policy_match": N, "neutrality": N, "partisan_cues": N, "flags": "any concerns, or none"}
'''
