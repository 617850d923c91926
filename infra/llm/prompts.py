CV_EVAL_PROMPT = """You are an expert CV evaluator. Evaluate the following CV against the job requirements and scoring rubric provided in the context.

REFERENCE CONTEXT (Job Description and CV Scoring Rubric):
{context}

CANDIDATE CV TO EVALUATE:
{cv_text}

INSTRUCTIONS:
1. Use the scoring rubric and job requirements from the reference context above to evaluate the CV.
2. Score each parameter on a 1-5 scale according to the rubric provided in the context.
3. The rubric should specify the parameters, weights, and scoring criteria. If the context contains a scoring rubric, follow it exactly.
4. Calculate scores for: Technical Skills Match, Experience Level, Relevant Achievements, and Cultural/Collaboration Fit.
- Do NOT infer missing data. Do NOT use prior knowledge.

RESPONSE FORMAT (JSON only, no markdown):
{{
  "technical_skills": <integer 1-5>,
  "experience_level": <integer 1-5>,
  "achievements": <integer 1-5>,
  "cultural_fit": <integer 1-5>,
  "feedback": "<detailed feedback explaining the scores and how they align with the rubric>"
}}"""


PROJECT_EVAL_PROMPT = """You are an expert project evaluator. Evaluate the following project report against the case study requirements and scoring rubric provided in the context.

REFERENCE CONTEXT (Case Study Brief and Project Scoring Rubric):
{context}

PROJECT REPORT TO EVALUATE:
{report_text}

INSTRUCTIONS:
1. FIRST, determine if the provided document is actually a project report deliverable. If it is a CV, resume, job description, or any other type of document that is NOT a project report, set "is_relevant" to false and explain in "feedback" why it is not relevant. Do NOT provide scores in this case.
2. If the document IS a project report, set "is_relevant" to true and proceed with evaluation.
3. Use the scoring rubric and case study requirements from the reference context above to evaluate the project.
4. Score each parameter on a 1-5 scale according to the rubric provided in the context. If the context contains a scoring rubric, follow it exactly.
5. Evaluate: Correctness (Prompt & Chaining), Code Quality & Structure, Resilience & Error Handling, Documentation & Explanation, and Creativity/Bonus.

RESPONSE FORMAT (JSON only, no markdown):
{{
  "is_relevant": <true if the document is a project report, false otherwise>,
  "correctness": <number 1-5, only if is_relevant is true>,
  "code_quality": <number 1-5, only if is_relevant is true>,
  "resilience": <number 1-5, only if is_relevant is true>,
  "documentation": <number 1-5, only if is_relevant is true>,
  "creativity": <number 1-5, only if is_relevant is true>,
  "feedback": "<feedback explaining the scores, or why the document is not relevant>"
}}"""


FINAL_SUMMARY_PROMPT = """You are a hiring manager. Based on the CV evaluation{project_clause} below, provide a concise overall summary (3-5 sentences) that includes:
- Key strengths of the candidate
- Notable gaps or areas for improvement
- Final recommendation

CV EVALUATION:
Match Rate: {cv_match_rate:.2f}
Scores: Technical Skills {technical_skills}, Experience {experience_level}, Achievements {achievements}, Cultural Fit {cultural_fit}
Feedback: {cv_feedback}

{project_section}

RESPONSE FORMAT (JSON only, no markdown):
{{
  "overall_summary": "<3-5 sentence summary with strengths, gaps, and recommendation>"
}}"""

PROJECT_SUMMARY_SECTION = """PROJECT EVALUATION:
Score: {project_score:.2f}/5
Scores: Correctness {correctness}, Code Quality {code_quality}, Resilience {resilience}, Documentation {documentation}, Creativity {creativity}
Feedback: {project_feedback}"""

PROJECT_NOT_APPLICABLE = """PROJECT EVALUATION:
Not applicable - This is a CV-only evaluation."""


QUERY_GENERATION_PROMPT = """You are an expert at creating semantic search queries for vector databases. Analyze the following job documents and generate optimal search queries that will help retrieve the most relevant context for evaluating candidates.

JOB DOCUMENTS:
{documents}

JOB TYPE: {job_type}

INSTRUCTIONS:
1. For CV evaluation, generate 3-5 concise query strings that capture key requirements, skills, and evaluation criteria from the job description and CV rubric.
2. Each query should be optimized for semantic search in a vector database.
3. Queries should focus on: technical skills, experience requirements, achievements, cultural fit, and any specific job requirements.
{project_instruction}

RESPONSE FORMAT (JSON only, no markdown):
{response_format}

Generate queries that are specific, focused, and will retrieve the most relevant context chunks for evaluation."""

PROJECT_QUERY_INSTRUCTION = (
    "4. For project evaluation, generate 3-5 query strings that capture project requirements, "
    "implementation criteria, code quality standards, correctness and evaluation metrics from the "
    "case study brief and project rubric."
)


RUBRIC_STANDARDIZATION_PROMPT = """You are an expert at creating standardized evaluation rubrics. Convert the following user-provided rubric into a structured, standardized format.

{context_section}USER RUBRIC:
{rubric_text}

RUBRIC TYPE: {rubric_type}

INSTRUCTIONS:
1. Analyze the user's rubric (even if it's just a simple description like "strong in A") and extract key evaluation criteria.
2. Create a standardized rubric with the following parameters and weights:
{parameter_lines}
3. Each parameter should have:
   - weight: A number (weights must sum to 1.0)
   - criteria: Clear description of what this parameter evaluates
   - scale: An object with keys "1" to "5", each describing what that score means
4. If the user's rubric is vague or incomplete, infer reasonable criteria based on the context and best practices.
5. Make the rubric straightforward, clear, and actionable.

RESPONSE FORMAT (JSON only, no markdown):
{response_format}"""
