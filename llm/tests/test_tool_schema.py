"""Tests for tools_to_langchain_schemas."""

from django.test import SimpleTestCase

from llm.tools import tools_to_langchain_schemas
from llm.tests.utils import AddNumberTool, SleepTool


class ToolsToLangchainSchemasTests(SimpleTestCase):
    """Test tools_to_langchain_schemas output structure."""

    def test_single_tool_output_structure(self):
        result = tools_to_langchain_schemas([AddNumberTool()])
        self.assertEqual(len(result), 1)
        schema = result[0]
        self.assertEqual(schema["type"], "function")
        fn = schema["function"]
        self.assertEqual(fn["name"], "add_number")
        self.assertEqual(fn["description"], AddNumberTool.description)
        self.assertEqual(fn["parameters"]["type"], "object")
        self.assertIn("a", fn["parameters"]["properties"])
        self.assertIn("b", fn["parameters"]["properties"])
        self.assertEqual(sorted(fn["parameters"]["required"]), ["a", "b"])

    def test_optional_fields_are_not_required(self):
        fn = tools_to_langchain_schemas([SleepTool()])[0]["function"]
        self.assertEqual(fn["name"], "sleep_echo")
        self.assertEqual(fn["parameters"]["required"], ["label"])

    def test_multiple_tools_keep_order(self):
        result = tools_to_langchain_schemas([SleepTool(), AddNumberTool()])
        self.assertEqual([s["function"]["name"] for s in result], ["sleep_echo", "add_number"])

    def test_empty_list_returns_empty(self):
        self.assertEqual(tools_to_langchain_schemas([]), [])
