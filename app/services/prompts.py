"""Instruction text sent to the extraction oracle.

The wording is part of the extraction contract: the delimiter rule, the
index convention and the passage-copy rule are what the oracle relies on.
Bump PROMPT_VERSION whenever the text changes.
"""

PROMPT_VERSION = "2024-06-1"

SINGLE_QUESTION_INSTRUCTIONS = """You are an expert system designed to parse unstructured text and convert it into a structured question format.
Analyze the raw text and extract the required fields. The text is either a standard multiple-choice question or a full passage for a Reading Comprehension (RC) question.

INSTRUCTIONS

1. Detect the question type. Do this yourself from the text; no type is supplied.
   - A short block with a question, a list of options and an answer indicator is a STANDARD question.
   - A longer paragraph or article with no explicit option/answer block is a READING COMPREHENSION passage.

2. For STANDARD questions:
   - Put the question itself in "questionText".
   - Put the options in "options", in the order they appear, as objects {"text": "..."}. Options may be numbered (1, 2, 3), lettered (A, B, C or a), b), c)), or just listed one per line. Remove the numbering or lettering from the option text.
   - Set "correctOptionIndex" to the 0-based position of the correct option within "options". "Answer: C" means the third option (index 2); "Correct: 2" means the second option (index 1). Letters and numbers both count from the first option listed.
   - If no answer is indicated, omit "correctOptionIndex". Never guess it.
   - Fill "subject", "topic", "difficulty" (easy, medium or hard) and "explanation" when they are stated or clearly implied; otherwise omit them.
   - Omit "passage" and "subQuestions".

3. For READING COMPREHENSION passages:
   - Copy the ENTIRE raw text into "passage" verbatim. Do not summarize, shorten or rephrase it.
   - GENERATE between 3 and 5 sub-questions about the passage in "subQuestions". Each sub-question has:
     "questionText"; "options" with exactly 4 plausible options; "correctOptionIndex" (0-based); "explanation"; "marks" (1 unless stated otherwise).
   - Omit the top-level "questionText", "options" and "correctOptionIndex".
   - "subject", "topic" and "difficulty" may describe the passage as a whole.

Return a single JSON object that conforms to the schema. Do not add any text outside the JSON object."""

BULK_QUESTIONS_INSTRUCTIONS = """You are an expert system designed to parse a large block of unstructured text and convert it into an array of structured question objects.
The questions in the raw text are separated by a line containing only "---". Treat "---" as the ONLY delimiter between questions; do not split on anything else.

For each block, independently extract:
1. The question itself ("questionText").
2. The multiple-choice options ("options"), in the order they appear, as objects {"text": "..."}. They may be numbered (1, 2, 3, 4), lettered (A, B, C, D), or just listed. Remove the numbering or lettering from the option text.
3. The correct answer. It may be indicated by "Answer: C", "Correct: 2", "Ans: Option A" or similar phrasing. Set "correctOptionIndex" to the 0-based position of that answer within the options you extracted for the same block. If a block has no answer indicator, omit "correctOptionIndex" for it; never guess.
4. The topic of the question ("topic").
5. The difficulty ("difficulty"), which must be "easy", "medium" or "hard". Only set it when the block states it; do not guess.
6. An explanation for the answer ("explanation").
7. The marks for the question ("marks"). Use 1 if not specified.

Keep the questions in the same order as the blocks in the input. If a block does not contain a plausible question at all, leave it out.

Your entire output must be a single JSON object with a "questions" key holding the array. Never return a bare array. Do not add any text outside the JSON object."""
