"""
LLM Collaborators
=================

Generation and summarization ports backed by an ``LLMInterface``.
"""

import json
import re
from typing import Optional

import openai

from sql_agent.errors import GenerationError, SummarizationError
from sql_agent.llm.base import LLMInterface
from sql_agent.models import ExecutionOutcome, GeneratedQuery, SchemaSnapshot
from sql_agent.ports import QueryGenerator, ResultSummarizer

GENERATION_PROMPT_TEMPLATE = """You are a PostgreSQL SQL expert. Generate a SQL query based on the user's question.

{schema}
Rules:
- Generate ONLY SELECT queries (no INSERT, UPDATE, DELETE, DROP, etc.)
- Use proper PostgreSQL syntax
- Include appropriate WHERE clauses, JOINs, and aggregations as needed
- Return ONLY the SQL query with no markdown, no explanation
- Do not include semicolons at the end
- Use table and column names exactly as shown in the schema

User Question: {question}
"""

CORRECTION_PROMPT_TEMPLATE = """
Previous attempt failed:
{previous_sql}

Feedback:
{feedback}

Generate a corrected SQL query only.
"""

SUMMARY_PROMPT_TEMPLATE = """You are a helpful assistant that explains database query results in natural, simple language.

User Question: {question}

SQL Query:
{sql}

Query Results:
{rows}

Row Count: {row_count}
Execution Time: {elapsed_ms:.0f}ms

Task:
Provide a clear, meaningful summary for the user based on these results.
"""

# Errors raised by the LLM transport, after its own retries
LLM_ERRORS = (openai.OpenAIError, TimeoutError, ConnectionError)

_CODE_FENCE = re.compile(r"```(?:sql)?\s*", re.IGNORECASE)


def format_schema_for_prompt(schema: SchemaSnapshot) -> str:
    """Render a schema snapshot as prompt text."""
    lines = ["Database Schema:", ""]
    for table_name, columns in schema.items():
        lines.append(f"Table: {table_name}")
        lines.append("Columns:")
        for column in columns:
            line = f"  - {column.name} ({column.data_type}) {'NULL' if column.nullable else 'NOT NULL'}"
            if column.default:
                line += f" DEFAULT {column.default}"
            lines.append(line)
        lines.append("")
    return "\n".join(lines) + "\n"


def clean_sql(text: str) -> str:
    """Strip markdown fences and a trailing semicolon from LLM output."""
    sql = _CODE_FENCE.sub("", text.strip())
    sql = sql.strip()
    if sql.endswith(";"):
        sql = sql[:-1]
    return sql.strip()


class LLMQueryGenerator(QueryGenerator):
    """Prompts an LLM with the schema and any correction feedback."""

    def __init__(self, llm: LLMInterface) -> None:
        self.llm = llm

    def build_prompt(
        self,
        question: str,
        schema: SchemaSnapshot,
        previous_attempt: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> str:
        prompt = GENERATION_PROMPT_TEMPLATE.format(
            schema=format_schema_for_prompt(schema),
            question=question,
        )
        if previous_attempt and feedback:
            prompt += CORRECTION_PROMPT_TEMPLATE.format(
                previous_sql=previous_attempt,
                feedback=feedback,
            )
        return prompt

    async def generate(
        self,
        question: str,
        schema: SchemaSnapshot,
        previous_attempt: Optional[str] = None,
        feedback: Optional[str] = None,
    ) -> GeneratedQuery:
        prompt = self.build_prompt(question, schema, previous_attempt, feedback)
        try:
            response = await self.llm.generate(prompt)
        except LLM_ERRORS as exc:
            raise GenerationError(f"LLM request failed: {exc}", cause=exc) from exc

        raw = response.content.strip()
        sql = clean_sql(raw)
        if not sql:
            raise GenerationError("LLM returned an empty response", context={"raw_output": raw})
        return GeneratedQuery(sql=sql, raw_output=raw, model=response.model)


class LLMResultSummarizer(ResultSummarizer):
    """Asks an LLM to explain query results to the user."""

    def __init__(self, llm: LLMInterface) -> None:
        self.llm = llm

    async def summarize(self, question: str, sql: str, outcome: ExecutionOutcome) -> str:
        prompt = SUMMARY_PROMPT_TEMPLATE.format(
            question=question,
            sql=sql,
            rows=json.dumps(outcome.rows, indent=2, default=str),
            row_count=outcome.row_count,
            elapsed_ms=outcome.elapsed_ms,
        )
        try:
            response = await self.llm.generate(prompt)
        except LLM_ERRORS as exc:
            raise SummarizationError(f"LLM request failed: {exc}", cause=exc) from exc

        summary = response.content.strip()
        if not summary:
            raise SummarizationError("LLM returned an empty summary")
        return summary
