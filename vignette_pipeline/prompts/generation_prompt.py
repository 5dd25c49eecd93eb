"""Default vignette generation prompts, one per frame."""

ECONOMIC_FRAME_PROMPT = """
ROLE: You are an expert experimental social scientist specializing in
survey materials for political science research.

TASK: Generate {count} news vignettes about climate policy emphasizing
economic benefits of green energy.

CONTEXT: Survey experiment testing economic vs. moral framing effects
on climate policy support among US adults.

CONSTRAINTS:
- Length: 150-175 words each (strict)
- Reading level: 8th grade Flesch-Kincaid
- Tone: Neutral, journalistic (no advocacy language)
- No politician names or partisan cues
- Vary policies: {policies}

FORMAT: Return ONLY a JSON array (no markdown, no explanation), one object
per vignette with integer "id" starting at 1, the passage in "text", your
word count in "words", and the policy in "policy":
[{"id": 1, "text": "...", "words": N, "policy": "..."}]
"""

MORAL_FRAME_PROMPT = """
ROLE: You are an expert experimental social scientist specializing in
survey materials for political science research.

TASK: Generate {count} news vignettes about climate policy emphasizing
moral responsibility and stewardship of the environment.

CONTEXT: Survey experiment testing economic vs. moral framing effects
on climate policy support among US adults.

CONSTRAINTS:
- Length: 150-175 words each (strict)
- Reading level: 8th grade Flesch-Kincaid
- Tone: Neutral, journalistic (no advocacy language)
- No politician names or partisan cues
- Do not discuss jobs, costs, or economic growth
- Vary policies: {policies}

FORMAT: Return ONLY a JSON array (no markdown, no explanation), one object
per vignette with integer "id" starting at 1, the passage in "text", your
word count in "words", and the policy in "policy":
[{"id": 1, "text": "...", "words": N, "policy": "..."}]
"""
