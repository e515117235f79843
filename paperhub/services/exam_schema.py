"""
Output contract for exam paper extraction.

EXAM_SCHEMA is passed to Gemini as the response schema (OpenAPI subset:
upper-case type names, ``nullable`` instead of type unions). PARSE_PROMPT
carries the transcription rules the schema cannot express.
"""

FIGURE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "label": {"type": "STRING"},        # e.g. "Figure 1"
        "description": {"type": "STRING"},  # short caption/context
    },
    "property_ordering": ["label", "description"],
}

EQUATION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "latex": {"type": "STRING"},        # LaTeX-like expression
        "description": {"type": "STRING"},  # optional explanation
    },
    "required": ["latex"],
    "property_ordering": ["latex", "description"],
}

SUB_QUESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "sub_number": {"type": "STRING"},   # "(a)", "a", "i", etc.
        "text": {"type": "STRING"},
        "marks": {"type": "NUMBER", "nullable": True},
        "figures": {"type": "ARRAY", "items": FIGURE_SCHEMA},
        "equations": {"type": "ARRAY", "items": EQUATION_SCHEMA},
    },
    "required": ["sub_number", "text"],
    "property_ordering": ["sub_number", "text", "marks", "figures", "equations"],
}

QUESTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "question_number": {"type": "STRING"},
        "text": {"type": "STRING"},
        "marks": {"type": "NUMBER", "nullable": True},
        "figures": {"type": "ARRAY", "items": FIGURE_SCHEMA},
        "equations": {"type": "ARRAY", "items": EQUATION_SCHEMA},
        "sub_questions": {"type": "ARRAY", "items": SUB_QUESTION_SCHEMA},
    },
    "required": ["question_number", "text"],
    "property_ordering": ["question_number", "text", "marks", "figures", "equations", "sub_questions"],
}

EXAM_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "course_code": {"type": "STRING"},
        "course_name": {"type": "STRING"},
        "exam_date": {"type": "STRING"},  # "2024-06-23" or ""
        "exam_year": {"type": "STRING"},  # "2024" or ""
        "questions": {"type": "ARRAY", "items": QUESTION_SCHEMA},
    },
    "required": ["course_code", "course_name", "questions"],
    "property_ordering": ["course_code", "course_name", "exam_date", "exam_year", "questions"],
}

PARSE_PROMPT = """
You are converting a university exam paper PDF into structured JSON.

Follow these rules strictly:

1. METADATA
- Extract:
  - "course_code": short code such as "CSCI101" or "ENGR2013".
  - "course_name": full course title.
  - "exam_date": exam date in "YYYY-MM-DD" format if possible, otherwise "".
  - "exam_year": four-digit year, e.g. "2024". If unknown, use "".
- If several dates appear (e.g. print date and exam date), use the one marked as the exam date.

2. QUESTIONS
- Extract ALL questions in exam order.
- Each question MUST have:
  - "question_number": the label printed in the paper ("1", "Q1", "Section A - Q1", etc.).
  - "text": full wording of the main question, including any stem shared by its sub-questions.
  - "marks": total marks for the question if clearly shown, else null.
  - "figures": diagrams, charts, tables, circuit diagrams, etc. referenced in the question.
  - "equations": key mathematical expressions used in the question.
  - "sub_questions": each part such as (a), (b), (c).

3. SUB-QUESTIONS
- For each sub-question:
  - "sub_number": the label exactly as printed, like "(a)", "(b)", "(i)", "(ii)". Do not renumber.
  - "text": the full wording of the sub-question.
  - "marks": marks if shown (e.g. "[5 marks]"), else null.
  - "figures" and "equations": those specific to the sub-question.

4. FIGURES
- Treat diagrams, graphs, tables, images and schematics as figures.
- For each figure:
  - "label": the printed label ("Figure 1", "Table 2"). Without one, use a short label such as "figure_q1a_1".
  - "description": short plain-text description from the caption or nearby text.

5. EQUATIONS
- For each equation:
  - "latex": the visible math as a LaTeX-like string (e.g. "E = mc^2", "\\int_a^b f(x) dx").
  - "description": a short explanation if it helps, otherwise "".

6. HALLUCINATIONS
- Do NOT invent questions, figures or equations.
- If something is partially cut off, transcribe it as faithfully as you can.
- If a field is missing, use:
  - "" for unknown strings,
  - null for unknown numbers (e.g. marks),
  - [] for empty arrays.

Return ONLY valid JSON that exactly follows the given schema.
"""
