"""Tests del loader YAML de descripciones."""

import pytest

from orbita.core.errors import ConfigError, DuplicateId, ValidationError
from orbita.core.graph import build_graph, load_description, parse_description


class TestParseDescription:
    """Parseo de texto YAML."""

    def test_full_document(self):
        """version, name, resources y outputs."""
        stack = parse_description(
            "version: 1\n"
            "name: demo\n"
            "resources:\n"
            "  A: {kind: Network, attributes: {cidr_block: 10.0.0.0/16}}\n"
            "outputs:\n"
            "  vpc: ${A}\n"
        )

        assert stack.name == "demo"
        assert stack.resources["A"].attributes == {"cidr_block": "10.0.0.0/16"}
        assert stack.outputs == {"vpc": "${A}"}

    def test_bare_mapping_is_resources(self):
        """Sin clave resources, el documento entero son los recursos."""
        stack = parse_description("A: {kind: Network}\nB: {kind: Gateway, depends_on: [A]}\n")

        assert set(stack.resources) == {"A", "B"}

    def test_duplicate_keys_rejected(self):
        """Un id repetido en YAML no se pisa en silencio."""
        with pytest.raises(DuplicateId):
            parse_description(
                "resources:\n"
                "  A: {kind: Network}\n"
                "  A: {kind: Gateway}\n"
            )

    def test_duplicate_id_without_resources_key(self):
        """En la forma corta los ids están en la raíz."""
        with pytest.raises(DuplicateId):
            parse_description(
                "A: {kind: Network}\n"
                "A: {kind: Gateway}\n"
            )

    def test_duplicate_attribute_is_validation_error(self):
        """Una clave repetida fuera de los ids de recurso no es DuplicateId."""
        with pytest.raises(ValidationError) as exc:
            parse_description(
                "resources:\n"
                "  A:\n"
                "    kind: Network\n"
                "    attributes:\n"
                "      cidr_block: 10.0.0.0/16\n"
                "      cidr_block: 10.1.0.0/16\n"
            )

        assert not isinstance(exc.value, DuplicateId)
        assert "cidr_block" in str(exc.value)

    def test_duplicate_top_level_key_is_validation_error(self):
        with pytest.raises(ValidationError):
            parse_description(
                "name: a\n"
                "name: b\n"
                "resources: {}\n"
            )

    def test_invalid_yaml(self):
        """YAML mal formado es un error de configuración."""
        with pytest.raises(ConfigError):
            parse_description("resources: [unclosed\n")

    def test_not_a_mapping(self):
        """Un escalar no es una descripción."""
        with pytest.raises(ValidationError):
            parse_description("- solo\n- una lista\n")

    def test_empty_document(self):
        """Un documento vacío es un stack sin recursos."""
        stack = parse_description("")

        assert len(build_graph(stack)) == 0


class TestLoadDescription:
    """Carga desde archivo."""

    def test_missing_file(self, tmp_path):
        """Archivo inexistente → ConfigError."""
        with pytest.raises(ConfigError):
            load_description(tmp_path / "nope.yaml")

    def test_name_defaults_to_file_stem(self, tmp_path):
        """Sin name, el stack toma el nombre del archivo."""
        path = tmp_path / "red-base.yaml"
        path.write_text("resources:\n  A: {kind: Network}\n")

        assert load_description(path).name == "red-base"

    def test_web_environment_stack(self, web_stack_path):
        """El stack de ejemplo carga y construye un grafo válido."""
        stack = load_description(web_stack_path)
        graph = build_graph(stack)

        assert stack.name == "web-environment"
        assert len(graph) == 10
        assert "EngineeringLB" in graph["Listener"].dependencies
        assert graph["WebServerInstance1"].dependencies >= {"PublicRoute", "WebserversSG", "EngineeringVpc"}
