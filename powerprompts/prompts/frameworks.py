"""Structuring templates and the meta-prompts that rewrite a raw prompt into them."""

from pydantic import BaseModel, Field


class TemplateSection(BaseModel):
    """One named section of a structuring template."""

    tag: str
    label: str
    summary: str = Field(description="What the section holds (shown to the structuring model)")
    instruction: str = Field(description="How to fill the section in")
    placeholder: str = Field(description="Placeholder shown inside the tag in the output format")


class StructuringTemplate(BaseModel):
    """A named, ordered set of sections."""

    name: str
    full_name: str
    description: str
    complexity: str
    best_for: str
    sections: list[TemplateSection]

    @property
    def structure(self) -> list[str]:
        """Section tags in order."""
        return [section.tag for section in self.sections]


TEMPLATES: dict[str, StructuringTemplate] = {
    "RACE": StructuringTemplate(
        name="RACE",
        full_name="Role, Action, Context, Expectation",
        description=(
            "A simple, effective framework with four components: who, what, "
            "background and desired outcome."
        ),
        complexity="Low",
        best_for="Beginners and straightforward tasks",
        sections=[
            TemplateSection(
                tag="role",
                label="Role",
                summary="Who should the AI act as? What expertise or perspective?",
                instruction="Identify the implicit or explicit role the AI should take",
                placeholder="Clear description of the AI's role and expertise",
            ),
            TemplateSection(
                tag="action",
                label="Action",
                summary="What specific task should be performed?",
                instruction="Extract the core action/task to be performed",
                placeholder="Specific, actionable task to be performed",
            ),
            TemplateSection(
                tag="context",
                label="Context",
                summary="What background information, constraints, or requirements are relevant?",
                instruction="Gather all relevant context, constraints, and background",
                placeholder="All relevant background information, constraints, requirements",
            ),
            TemplateSection(
                tag="expectation",
                label="Expectation",
                summary="What format, quality, or characteristics should the output have?",
                instruction="Define clear expectations for the output format and quality",
                placeholder="Clear output format, quality criteria, and success metrics",
            ),
        ],
    ),
    "COSTAR": StructuringTemplate(
        name="COSTAR",
        full_name="Context, Objective, Style, Tone, Audience, Response",
        description=(
            "A comprehensive framework for content creation and communication tasks "
            "that emphasizes style, tone, and audience."
        ),
        complexity="Medium",
        best_for="Content creators and marketers",
        sections=[
            TemplateSection(
                tag="context",
                label="Context",
                summary="Background information and situation",
                instruction="Extract or infer the context and background",
                placeholder="Background information and situational context",
            ),
            TemplateSection(
                tag="objective",
                label="Objective",
                summary="Clear goal or desired outcome",
                instruction="Identify the clear objective or goal",
                placeholder="Clear, measurable goal or desired outcome",
            ),
            TemplateSection(
                tag="style",
                label="Style",
                summary="Writing style or approach (e.g., formal, casual, technical)",
                instruction="Determine the appropriate writing style",
                placeholder="Writing style and approach to use",
            ),
            TemplateSection(
                tag="tone",
                label="Tone",
                summary="Emotional tone (e.g., professional, friendly, authoritative)",
                instruction="Define the desired tone",
                placeholder="Emotional tone and voice to adopt",
            ),
            TemplateSection(
                tag="audience",
                label="Audience",
                summary="Target audience and their characteristics",
                instruction="Identify the target audience",
                placeholder="Target audience characteristics and needs",
            ),
            TemplateSection(
                tag="response",
                label="Response",
                summary="Expected response format and structure",
                instruction="Specify the expected response format",
                placeholder="Expected format, structure, and deliverables",
            ),
        ],
    ),
    "APE": StructuringTemplate(
        name="APE",
        full_name="Action, Purpose, Expectation",
        description="The simplest framework: three core elements for short, direct prompts.",
        complexity="Very Low",
        best_for="Simple, direct tasks",
        sections=[
            TemplateSection(
                tag="action",
                label="Action",
                summary="The specific task to perform",
                instruction="Extract the core action/task",
                placeholder="Specific, actionable task or directive",
            ),
            TemplateSection(
                tag="purpose",
                label="Purpose",
                summary="Why this task matters and what it achieves",
                instruction="Identify the purpose and value of this task",
                placeholder="Why this matters and what it accomplishes",
            ),
            TemplateSection(
                tag="expectation",
                label="Expectation",
                summary="What the ideal output looks like",
                instruction="Define clear expectations for success",
                placeholder="Clear success criteria and output quality",
            ),
        ],
    ),
    "CREATE": StructuringTemplate(
        name="CREATE",
        full_name="Character, Request, Examples, Adjustments, Type, Extras",
        description=(
            "The most detailed framework, with six sections for complex tasks that "
            "need extensive context and constraints."
        ),
        complexity="High",
        best_for="Advanced users and complex tasks",
        sections=[
            TemplateSection(
                tag="character",
                label="Character",
                summary="Role, persona, or expertise the AI should embody",
                instruction="Define the AI's character/persona/expertise",
                placeholder="AI's role, persona, or area of expertise",
            ),
            TemplateSection(
                tag="request",
                label="Request",
                summary="Explicit instruction or task",
                instruction="State the explicit request or task",
                placeholder="Clear, explicit instruction or task",
            ),
            TemplateSection(
                tag="examples",
                label="Examples",
                summary="Sample inputs/outputs or scenarios (if applicable)",
                instruction='Provide relevant examples or scenarios (use "N/A" if none)',
                placeholder='Sample inputs/outputs or relevant scenarios, or "N/A"',
            ),
            TemplateSection(
                tag="adjustments",
                label="Adjustments",
                summary="Constraints, limitations, or special requirements",
                instruction="Specify any adjustments, constraints, or requirements",
                placeholder="Constraints, limitations, or special requirements",
            ),
            TemplateSection(
                tag="type",
                label="Type",
                summary="Format and structure of the desired output",
                instruction="Define the output type and format",
                placeholder="Output format and structure expected",
            ),
            TemplateSection(
                tag="extras",
                label="Extras",
                summary="Additional context, edge cases, or considerations",
                instruction="Include any extras, edge cases, or additional context",
                placeholder="Additional context, edge cases, or considerations",
            ),
        ],
    ),
}


def get_template(name: str) -> StructuringTemplate:
    """Look up a structuring template by name (case-insensitive)."""
    try:
        return TEMPLATES[name.upper()]
    except KeyError:
        raise ValueError(
            f"Unsupported framework: {name}. Must be one of: {', '.join(TEMPLATES)}"
        ) from None


def build_structuring_prompt(user_prompt: str, template_name: str) -> str:
    """
    Build the meta-prompt that restructures a raw prompt into a template.

    Args:
        user_prompt: The raw prompt
        template_name: One of RACE, COSTAR, APE, CREATE

    Returns:
        Meta-prompt text
    """
    template = get_template(template_name)
    count_words = {3: "three", 4: "four", 6: "six"}
    count = count_words.get(len(template.sections), str(len(template.sections)))

    overview = "\n".join(f"- **{s.label}**: {s.summary}" for s in template.sections)
    steps = "\n".join(f"{i}. {s.instruction}" for i, s in enumerate(template.sections, start=1))
    output_format = "\n\n".join(f"<{s.tag}>\n[{s.placeholder}]\n</{s.tag}>" for s in template.sections)

    return f"""You are an expert prompt engineer. Your task is to transform an unstructured prompt into the {template.name} framework.

The {template.name} framework structures prompts into {count} sections:
{overview}

Given the following user prompt, analyze it and restructure it into {template.name} format using XML tags.

User Prompt:
{user_prompt}

Instructions:
{steps}

Output the restructured prompt in this XML format:

{output_format}

Generate the {template.name}-structured prompt now:"""
