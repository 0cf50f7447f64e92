"""Base types and definitions for tools."""

import json
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ValidationError

from clawagent.models.llm import ToolDefinition, ToolFunction, ToolParameters, ToolProperty


class ToolInputError(ValueError):
    """Tool arguments could not be parsed or validated."""


class Tool(ABC):
    """A capability the model can invoke by name.

    Subclasses declare ``name``, ``description`` and a pydantic ``input_model``
    and implement :meth:`run`. :meth:`execute` never raises for bad arguments;
    it returns the problem as text so the model can see it and retry.
    """

    name: str
    description: str
    input_model: type[BaseModel]

    def get_definition(self) -> ToolDefinition:
        """Build the provider-facing definition from the input model."""
        return ToolDefinition(
            function=ToolFunction(
                name=self.name,
                description=self.description,
                parameters=schema_to_parameters(self.input_model.model_json_schema()),
            )
        )

    def parse_input(self, arguments: str) -> BaseModel:
        """Parse and validate a raw JSON argument string.

        Raises:
            ToolInputError: If the arguments are not a JSON object or fail validation
        """
        try:
            raw_input = json.loads(arguments) if arguments and arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolInputError(f"arguments are not valid JSON: {e.msg}") from e
        if not isinstance(raw_input, dict):
            raise ToolInputError("arguments must be a JSON object")

        try:
            return self.input_model.model_validate(raw_input)
        except ValidationError as e:
            raise ToolInputError(format_validation_error(e)) from e

    async def execute(self, arguments: str) -> str:
        """Run the tool against a raw JSON argument string."""
        try:
            params = self.parse_input(arguments)
        except ToolInputError as e:
            return f"Error: {e}"
        return await self.run(params)

    @abstractmethod
    async def run(self, params: Any) -> str:
        """Run the tool with validated parameters."""


def schema_to_parameters(schema: dict[str, Any]) -> ToolParameters:
    """Reduce a pydantic JSON schema to the canonical parameter shape."""
    properties: dict[str, ToolProperty] = {}
    for prop_name, prop in schema.get("properties", {}).items():
        prop_type = prop.get("type")
        if prop_type is None:
            # Optional fields come through as anyOf[T, null]
            types = [option.get("type") for option in prop.get("anyOf", []) if option.get("type") != "null"]
            prop_type = types[0] if types else "string"
        properties[prop_name] = ToolProperty(
            type=prop_type,
            description=prop.get("description", ""),
            enum=[str(value) for value in prop["enum"]] if "enum" in prop else None,
        )
    return ToolParameters(properties=properties, required=list(schema.get("required", [])))


def format_validation_error(error: ValidationError) -> str:
    """Turn pydantic errors into one line the model can act on."""
    problems = []
    for detail in error.errors():
        field = ".".join(str(part) for part in detail["loc"]) or "arguments"
        if detail["type"] == "missing":
            problems.append(f"missing required parameter '{field}'")
        else:
            problems.append(f"invalid parameter '{field}': {detail['msg']}")
    return "; ".join(problems)
