"""
------------------------------------------------------------------------------
Project:        DeweyFlux
File:           core/ai/prompts.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Centralized storage for AI instructions, prompt templates and
                the structured response schema of the classification request.
------------------------------------------------------------------------------
"""

from typing import Any, Dict

# Long documents are cut before prompting; the summary only needs the gist
MAX_PROMPT_CHARS = 120000

# --- ONTOLOGICAL REPORT ---
ONTOLOGY_FIELDS: Dict[str, str] = {
    "skos:prefLabel": "A concise, descriptive title for this document.",
    "skos:definition": "A 1-2 sentence summary of the main topic and outcome.",
    "Self": "Define the role and identity of the document (e.g., 'A technical manual for...').",
    "Thought": "Describe the primary thought process or intellectual journey within the document.",
    "Logic": "Explain the core logic, reasoning, or structure presented.",
    "Unity": "Describe any state of collaboration or synthesis achieved or discussed.",
    "Existence": "What new concept or reality was brought into existence or described?",
    "Improvement": "How did this document aim to improve understanding or a process?",
    "Mastery": "What concept or skill was mastered or significantly advanced in the text?",
    "Resonance": "Describe the document's connection to broader goals or external ideas.",
    "Transcendence": "Does this document lead to a higher level of understanding or a breakthrough insight?",
    "Everything": "Provide a holistic closing statement about the document's overall value and context.",
}

# --- RESPONSE SCHEMA (Gemini schema dialect, upper-case types) ---
CLASSIFICATION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "A concise, descriptive title for the text, like a book title."},
        "summary": {"type": "STRING", "description": "A detailed, multi-paragraph summary of the provided text."},
        "keywords": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "An array of 5-10 single-word or short-phrase keywords representing the main topics.",
        },
        "ddc": {
            "type": "OBJECT",
            "description": "The Dewey Decimal Classification for the text.",
            "properties": {
                "number": {"type": "STRING", "description": "The specific 3-digit Dewey Decimal number (e.g., '512')."},
                "name": {"type": "STRING", "description": "The name of the specific classification (e.g., 'Algebra')."},
                "path": {
                    "type": "ARRAY",
                    "description": "An array representing the hierarchy from main class to the specific number.",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "number": {"type": "STRING", "description": "The DDC number for this level (e.g., '500', '510', '512')."},
                            "name": {"type": "STRING", "description": "The name of the DDC class (e.g., 'Science', 'Mathematics', 'Algebra')."},
                        },
                    },
                },
            },
        },
        "ontologyReport": {
            "type": "OBJECT",
            "properties": {key: {"type": "STRING", "description": desc} for key, desc in ONTOLOGY_FIELDS.items()},
            "required": list(ONTOLOGY_FIELDS),
        },
    },
    "required": ["title", "summary", "keywords", "ddc", "ontologyReport"],
}

# --- CLASSIFICATION ---
PROMPT_CLASSIFICATION = """
Analyze the following text and provide a structured JSON output. Based on the content, you must:
1.  Create a suitable title.
2.  Write a comprehensive summary.
3.  Extract the most relevant keywords.
4.  Determine the most accurate Dewey Decimal Classification (DDC), providing the full hierarchical path. For example, for a text on algebra, the path would include 500 (Science), 510 (Mathematics), and 512 (Algebra).
5.  Generate an NLD_ONTOLOGICAL_REPORT by interpreting the text through the 10 core concepts provided in the schema. Answer the competency question associated with each concept based on the text's content.

Return ONLY a JSON object with the keys "title", "summary", "keywords", "ddc" (with "number", "name", "path") and "ontologyReport".

Here is the text to analyze:
---
{content}
---
"""


def build_classification_prompt(text: str) -> str:
    return PROMPT_CLASSIFICATION.format(content=text[:MAX_PROMPT_CHARS])


def to_json_schema(schema: Any) -> Any:
    """Converts the Gemini schema dialect to plain JSON Schema (lower-case types)."""
    if isinstance(schema, dict):
        converted = {}
        for key, value in schema.items():
            if key == "type" and isinstance(value, str):
                converted[key] = value.lower()
            else:
                converted[key] = to_json_schema(value)
        return converted
    if isinstance(schema, list):
        return [to_json_schema(v) for v in schema]
    return schema
