"""Tests for whole-configuration validation (contentpipe.graph.validator)."""

from contentpipe.graph.validator import ValidationResult, find_entry_points, validate
from contentpipe.config.loader import coerce_pipeline


# ── Valid configuration ───────────────────────────────────────────────────


class TestValidConfiguration:
    def test_valid_pair_has_no_errors(self, models_doc, pipeline_doc):
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid
        assert result.errors == []
        assert result.models_errors == []
        assert result.pipeline_errors == []
        assert result.cross_ref_errors == []
        assert result.output_routing_errors == []

    def test_entry_points_reported(self, models_doc, pipeline_doc):
        result = validate(models_doc, pipeline_doc)
        assert result.entry_points == ["transcribe"]

    def test_no_warnings_for_complete_config(self, models_doc, pipeline_doc):
        result = validate(models_doc, pipeline_doc)
        assert result.warnings == []

    def test_summary_when_valid(self, models_doc, pipeline_doc):
        assert validate(models_doc, pipeline_doc).summary() == "Valid (1 entry point(s))"

    def test_to_dict(self, models_doc, pipeline_doc):
        data = validate(models_doc, pipeline_doc).to_dict()
        assert data["is_valid"] is True
        assert data["entry_points"] == ["transcribe"]
        assert data["cycles"] == []
        assert data["conflicts"] == {}


# ── Never raises ──────────────────────────────────────────────────────────


class TestBadDocuments:
    def test_none_documents(self):
        result = validate(None, None)
        assert not result.is_valid
        assert result.models_errors
        assert result.pipeline_errors

    def test_non_object_documents(self):
        result = validate(["gpt"], "pipeline")
        assert "Models configuration must be an object keyed by ID" in result.models_errors
        assert "Pipeline configuration must be an object keyed by ID" in result.pipeline_errors

    def test_empty_documents(self):
        result = validate({}, {})
        assert "Models configuration cannot be empty" in result.models_errors
        assert "Pipeline configuration cannot be empty" in result.pipeline_errors

    def test_non_object_entry(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"] = "out/tasks/"
        result = validate(models_doc, pipeline_doc)
        assert "pipeline.tasks: entry must be an object" in result.pipeline_errors


# ── Schema checks ─────────────────────────────────────────────────────────


class TestSchema:
    def test_invalid_step_id(self, models_doc, pipeline_doc):
        pipeline_doc["1bad"] = pipeline_doc.pop("shopping")
        result = validate(models_doc, pipeline_doc)
        assert any("Invalid pipeline ID '1bad'" in e for e in result.pipeline_errors)

    def test_invalid_model_config_id(self, models_doc, pipeline_doc):
        models_doc["GPT"] = models_doc["gpt"]
        result = validate(models_doc, pipeline_doc)
        assert any("Invalid models ID 'GPT'" in e for e in result.models_errors)

    def test_missing_archive_field(self, models_doc, pipeline_doc):
        del pipeline_doc["transcribe"]["archive"]
        result = validate(models_doc, pipeline_doc)
        assert not result.is_valid
        assert any(e.startswith("pipeline.transcribe.archive") for e in result.pipeline_errors)

    def test_blank_archive_field(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["archive"] = "   "
        result = validate(models_doc, pipeline_doc)
        assert any("Archive path must be a non-empty string" in e for e in result.pipeline_errors)

    def test_step_named_kind(self, models_doc, pipeline_doc):
        pipeline_doc["kind"] = pipeline_doc.pop("shopping")
        pipeline_doc["summarize"]["output"] = {
            "tasks": "notes/tasks/",
            "kind": "notes/kind/",
            "default": "notes/other/",
        }
        pipeline_doc["summarize"]["next"] = {"tasks": "Action items", "kind": "Things to buy"}
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid, result.errors
        assert result.entry_points == ["transcribe"]

    def test_missing_output_field(self, models_doc, pipeline_doc):
        del pipeline_doc["tasks"]["output"]
        result = validate(models_doc, pipeline_doc)
        assert any(e.startswith("pipeline.tasks.output:") for e in result.pipeline_errors)

    def test_bad_base_url(self, models_doc, pipeline_doc):
        models_doc["gpt"]["baseUrl"] = "ftp://example.com"
        result = validate(models_doc, pipeline_doc)
        assert any(e.startswith("models.gpt.") and "http(s) URL" in e for e in result.models_errors)

    def test_unknown_implementation(self, models_doc, pipeline_doc):
        models_doc["gpt"]["implementation"] = "llama"
        result = validate(models_doc, pipeline_doc)
        assert any(e.startswith("models.gpt.implementation:") for e in result.models_errors)

    def test_too_many_steps(self, models_doc):
        pipeline = {
            f"step{i}": {
                "modelConfig": "gpt",
                "input": f"in/{i}/",
                "output": f"out/{i}/",
                "archive": f"archive/{i}/",
                "prompts": ["p.md"],
            }
            for i in range(21)
        }
        result = validate(models_doc, pipeline)
        assert any("maximum 20" in e for e in result.pipeline_errors)

    def test_malformed_model_does_not_cascade(self, models_doc, pipeline_doc):
        models_doc["gpt"]["apiKey"] = "has spaces in it"
        result = validate(models_doc, pipeline_doc)
        assert result.models_errors
        assert result.cross_ref_errors == []


# ── Cross-references and routing targets ──────────────────────────────────


class TestReferences:
    def test_missing_model_config(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["modelConfig"] = "nope"
        result = validate(models_doc, pipeline_doc)
        assert len(result.cross_ref_errors) == 1
        assert '"tasks"' in result.cross_ref_errors[0]
        assert '"nope"' in result.cross_ref_errors[0]

    def test_unknown_routing_target(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["next"] = {"ghost": "Somewhere"}
        result = validate(models_doc, pipeline_doc)
        assert any('"ghost"' in e for e in result.pipeline_errors)

    def test_unknown_routing_target_in_output(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"]["ghost"] = "notes/ghost/"
        result = validate(models_doc, pipeline_doc)
        assert any('routes to "ghost"' in e for e in result.pipeline_errors)

    def test_unused_model_config_warning(self, models_doc, pipeline_doc):
        models_doc["spare"] = dict(models_doc["gpt"])
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid
        assert "Unused model configs: spare" in result.warnings

    def test_step_without_prompts_warns(self, models_doc, pipeline_doc):
        pipeline_doc["shopping"]["prompts"] = []
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid
        assert any('"shopping" has no prompt files' in w for w in result.warnings)


# ── Cycles ────────────────────────────────────────────────────────────────


class TestCycles:
    def test_two_step_cycle(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["next"] = {"summarize": "Back to summary"}
        result = validate(models_doc, pipeline_doc)
        assert not result.is_valid
        assert result.cycles == [["summarize", "tasks", "summarize"]]
        assert "Circular routing detected: summarize -> tasks -> summarize" in result.pipeline_errors

    def test_self_loop(self, models_doc, pipeline_doc):
        pipeline_doc["shopping"]["next"] = {"shopping": "Again"}
        result = validate(models_doc, pipeline_doc)
        assert ["shopping", "shopping"] in result.cycles

    def test_three_step_cycle_names_full_path(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["next"] = {"shopping": "Buy"}
        pipeline_doc["shopping"]["next"] = {"summarize": "Review"}
        result = validate(models_doc, pipeline_doc)
        assert "Circular routing detected: summarize -> tasks -> shopping -> summarize" in result.pipeline_errors

    def test_diamond_is_not_a_cycle(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["next"] = {"shopping": "Buy"}
        result = validate(models_doc, pipeline_doc)
        assert result.cycles == []
        assert result.is_valid


# ── Topology ──────────────────────────────────────────────────────────────


class TestTopology:
    def test_no_entry_points(self, models_doc, pipeline_doc):
        del pipeline_doc["transcribe"]["input"]
        result = validate(models_doc, pipeline_doc)
        assert result.entry_points == []
        assert any("no entry points" in e for e in result.pipeline_errors)

    def test_every_step_referenced(self, models_doc):
        pipeline = {
            "a": {"modelConfig": "gpt", "input": "in/a/", "output": {"b": "out/b/"}, "archive": "arc/a/"},
            "b": {"modelConfig": "gpt", "input": "in/b/", "output": {"a": "out/a/"}, "archive": "arc/b/"},
        }
        result = validate(models_doc, pipeline)
        assert result.entry_points == []
        assert not result.is_valid
        assert ["a", "b", "a"] in result.cycles

    def test_orphaned_step(self, models_doc, pipeline_doc):
        pipeline_doc["lonely"] = {"modelConfig": "gpt", "output": "out/lonely/", "archive": "archive/lonely/"}
        result = validate(models_doc, pipeline_doc)
        assert result.entry_points == ["transcribe"]
        assert any('Orphaned step "lonely"' in e for e in result.pipeline_errors)

    def test_blank_input_counts_as_missing(self, models_doc, pipeline_doc):
        pipeline_doc["transcribe"]["input"] = "   "
        result = validate(models_doc, pipeline_doc)
        assert result.entry_points == []

    def test_multiple_entry_points(self, models_doc, pipeline_doc):
        pipeline_doc["email"] = {
            "modelConfig": "gpt",
            "input": "inbox/email/",
            "output": "out/email/",
            "archive": "archive/email/",
            "prompts": ["p.md"],
        }
        result = validate(models_doc, pipeline_doc)
        assert result.entry_points == ["transcribe", "email"]

    def test_find_entry_points_on_typed_pipeline(self, pipeline_doc):
        steps, errors = coerce_pipeline(pipeline_doc)
        assert errors == []
        assert find_entry_points(steps) == ["transcribe"]


# ── Output paths ──────────────────────────────────────────────────────────


class TestPathConflicts:
    def test_output_conflict(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["output"] = "out/shopping/"
        result = validate(models_doc, pipeline_doc)
        assert result.conflicts == {"out/shopping/": ["tasks", "shopping"]}
        assert 'Output path conflict: "out/shopping/" used by steps: tasks, shopping' in result.output_routing_errors

    def test_archive_conflicts_with_output(self, models_doc, pipeline_doc):
        pipeline_doc["transcribe"]["archive"] = "notes/other/"
        result = validate(models_doc, pipeline_doc)
        assert result.conflicts["notes/other/"] == ["transcribe", "summarize"]

    def test_repeated_path_within_one_step_is_not_a_conflict(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"]["shopping"] = "notes/tasks/"
        result = validate(models_doc, pipeline_doc)
        assert result.conflicts == {}


class TestDirectoryFormat:
    def test_missing_trailing_slash(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["output"] = "out/tasks"
        result = validate(models_doc, pipeline_doc)
        assert any('"out/tasks" must end with "/"' in e for e in result.output_routing_errors)

    def test_archive_missing_trailing_slash(self, models_doc, pipeline_doc):
        pipeline_doc["transcribe"]["archive"] = "archive/audio"
        result = validate(models_doc, pipeline_doc)
        assert any("archive path" in e for e in result.output_routing_errors)

    def test_parent_reference_in_output(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["output"] = "../outside/"
        result = validate(models_doc, pipeline_doc)
        assert any("parent directory references" in e for e in result.output_routing_errors)

    def test_parent_reference_in_input(self, models_doc, pipeline_doc):
        pipeline_doc["transcribe"]["input"] = "inbox/../secret/"
        result = validate(models_doc, pipeline_doc)
        assert any("input path" in e for e in result.pipeline_errors)

    def test_dots_inside_names_are_allowed(self, models_doc, pipeline_doc):
        pipeline_doc["tasks"]["output"] = "out/tasks..v2/"
        assert validate(models_doc, pipeline_doc).is_valid


class TestRoutingCompleteness:
    def test_missing_route_without_default_warns(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"] = {"tasks": "notes/tasks/"}
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid
        assert any("missing output paths for next steps: shopping" in w for w in result.warnings)

    def test_fully_covered_routes_without_default(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"] = {"tasks": "notes/tasks/", "shopping": "notes/shopping/"}
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid
        assert result.warnings == []

    def test_unused_output_path_warns(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["next"] = {"tasks": "Action items"}
        result = validate(models_doc, pipeline_doc)
        assert any("unused output paths configured: shopping" in w for w in result.warnings)

    def test_empty_routing_output_is_an_error(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"] = {}
        result = validate(models_doc, pipeline_doc)
        assert any("defines no paths" in e for e in result.output_routing_errors)

    def test_default_only_output_is_valid(self, models_doc, pipeline_doc):
        pipeline_doc["summarize"]["output"] = {"default": "notes/all/"}
        result = validate(models_doc, pipeline_doc)
        assert result.is_valid


# ── ValidationResult ──────────────────────────────────────────────────────


class TestValidationResult:
    def test_add_error_by_category(self):
        result = ValidationResult()
        result.add_error("cross_ref", "missing")
        result.add_error("output_routing", "conflict")
        assert result.cross_ref_errors == ["missing"]
        assert result.output_routing_errors == ["conflict"]
        assert result.errors == ["missing", "conflict"]
        assert not result.is_valid

    def test_warnings_do_not_invalidate(self):
        result = ValidationResult()
        result.add_warning("just a warning")
        assert result.is_valid

    def test_summary_lists_categories(self):
        result = ValidationResult()
        result.add_error("pipeline", "a")
        result.add_error("pipeline", "b")
        assert result.summary() == "Invalid (Pipeline: 2 error(s))"
