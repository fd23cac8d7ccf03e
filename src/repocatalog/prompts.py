"""
Prompt templates for the repository catalogue.

This module contains the system instructions and prompt templates used for LLM interactions.
"""

from llama_index.core.prompts import PromptTemplate


CLASSIFY_SYSTEM_PROMPT = (
    "You are an expert at analyzing code repositories and categorizing them "
    "based on their functionality."
)

EXTRACT_TOOLS_SYSTEM_PROMPT = (
    "You are an expert at analyzing code and extracting tools and functionalities. "
    "Always respond with valid JSON."
)

COMPARE_SYSTEM_PROMPT = (
    "You are an expert at comparing software tools and providing recommendations."
)

RECOMMEND_SYSTEM_PROMPT = (
    "You are an expert at recommending tools based on analysis and user needs."
)

# Prompt for assigning a repository to one taxonomy category
CLASSIFY_PROMPT = PromptTemplate(
    """Analyze the following repository output and categorize it into one of these categories:
{categories}

Repository: {repository_name}

Output:
{content}

Respond with the category name alone on the first line, followed by a brief explanation (2-3 sentences)."""
)

# Prompt for extracting the tools/functions a repository provides
EXTRACT_TOOLS_PROMPT = PromptTemplate(
    """Analyze the following repository and extract a list of tools/functions it provides.
For each tool, provide:
- name: The tool/function name
- description: Brief description of what it does
- type: The type (e.g., function, api, service, utility)

Repository: {repository_name}

Output:
{content}

Respond with a JSON array of tools."""
)

# Prompt for comparing the repositories of one category
COMPARE_PROMPT = PromptTemplate(
    """Compare the following repositories in the "{category}" category and provide:
1. Key similarities
2. Key differences
3. Strengths of each
4. Recommended use cases for each

Repositories:
{repositories}

Provide a structured comparison and recommendations."""
)

# Prompt for corpus-wide recommendations
RECOMMEND_PROMPT = PromptTemplate(
    """Based on the following analysis results, generate recommendations for which repositories/tools to use:

Analysis Results:
{analysis_results}

User Needs: {user_needs}

Provide clear, actionable recommendations with reasoning."""
)
