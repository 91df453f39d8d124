"""Module lifecycle policy and module request intake template validators."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Final

from config_governance.documents import as_list, as_trimmed_str, non_empty_list
from config_governance.validation import IssueCollector, ValidationResult

REQUIRED_MODULE_CLASSES: Final[tuple[str, ...]] = (
    "policy",
    "workflow",
    "connector",
    "domain_engine",
)
MIN_INTAKE_FIELDS: Final[int] = 5
MIN_RELEASE_GATE_KPIS: Final[int] = 4


class ModuleLifecycleErrorCode(StrEnum):
    MODULE_POLICY_INVALID_ROOT = "MODULE_POLICY_INVALID_ROOT"
    MODULE_POLICY_NO_CLASSES = "MODULE_POLICY_NO_CLASSES"
    MODULE_CLASS_MISSING = "MODULE_CLASS_MISSING"
    MODULE_CLASS_ADMISSION_MISSING = "MODULE_CLASS_ADMISSION_MISSING"
    MODULE_CLASS_PROMOTION_MISSING = "MODULE_CLASS_PROMOTION_MISSING"
    MODULE_POLICY_PRECEDENCE_MISSING = "MODULE_POLICY_PRECEDENCE_MISSING"
    MODULE_POLICY_INTAKE_FIELDS_WEAK = "MODULE_POLICY_INTAKE_FIELDS_WEAK"
    MODULE_POLICY_KPI_SET_WEAK = "MODULE_POLICY_KPI_SET_WEAK"


class IntakeTemplateErrorCode(StrEnum):
    INTAKE_TEMPLATE_INVALID_ROOT = "INTAKE_TEMPLATE_INVALID_ROOT"
    INTAKE_TEMPLATE_REQUIRED_FIELDS_WEAK = "INTAKE_TEMPLATE_REQUIRED_FIELDS_WEAK"
    INTAKE_TEMPLATE_FIELDS_MISSING = "INTAKE_TEMPLATE_FIELDS_MISSING"
    INTAKE_TEMPLATE_FIELD_UNDEFINED = "INTAKE_TEMPLATE_FIELD_UNDEFINED"
    INTAKE_TEMPLATE_FIELD_INVALID = "INTAKE_TEMPLATE_FIELD_INVALID"


def validate_module_lifecycle_policy(policy: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(policy, Mapping):
        issues.add(
            ModuleLifecycleErrorCode.MODULE_POLICY_INVALID_ROOT,
            "module_lifecycle_policy must be an object",
        )
        return ValidationResult(errors=issues.items())

    module_classes = policy.get("module_classes")
    if not isinstance(module_classes, Mapping):
        issues.add(
            ModuleLifecycleErrorCode.MODULE_POLICY_NO_CLASSES,
            "module_classes must be present",
        )
    else:
        for class_id in REQUIRED_MODULE_CLASSES:
            entry = module_classes.get(class_id)
            if not isinstance(entry, Mapping):
                issues.add(
                    ModuleLifecycleErrorCode.MODULE_CLASS_MISSING,
                    f"module class missing: {class_id}",
                    class_id=class_id,
                )
                continue
            if not non_empty_list(entry.get("admission_requirements")):
                issues.add(
                    ModuleLifecycleErrorCode.MODULE_CLASS_ADMISSION_MISSING,
                    f"module class {class_id} requires non-empty admission_requirements",
                    class_id=class_id,
                )
            if not non_empty_list(entry.get("promotion_requirements")):
                issues.add(
                    ModuleLifecycleErrorCode.MODULE_CLASS_PROMOTION_MISSING,
                    f"module class {class_id} requires non-empty promotion_requirements",
                    class_id=class_id,
                )

    if not non_empty_list(policy.get("policy_precedence")):
        issues.add(
            ModuleLifecycleErrorCode.MODULE_POLICY_PRECEDENCE_MISSING,
            "policy_precedence must be non-empty",
        )

    if len(as_list(policy.get("intake_template_required_fields"))) < MIN_INTAKE_FIELDS:
        issues.add(
            ModuleLifecycleErrorCode.MODULE_POLICY_INTAKE_FIELDS_WEAK,
            "intake_template_required_fields must include a meaningful minimum set",
            minimum=MIN_INTAKE_FIELDS,
        )

    release_gate = policy.get("release_gate")
    kpis = as_list(release_gate.get("kpis")) if isinstance(release_gate, Mapping) else []
    if len(kpis) < MIN_RELEASE_GATE_KPIS:
        issues.add(
            ModuleLifecycleErrorCode.MODULE_POLICY_KPI_SET_WEAK,
            f"release_gate.kpis must include at least {MIN_RELEASE_GATE_KPIS} KPIs",
            minimum=MIN_RELEASE_GATE_KPIS,
        )

    return ValidationResult(errors=issues.items())


def validate_module_request_intake_template(template: object) -> ValidationResult:
    issues = IssueCollector()
    if not isinstance(template, Mapping):
        issues.add(
            IntakeTemplateErrorCode.INTAKE_TEMPLATE_INVALID_ROOT,
            "module_request_intake_template must be an object",
        )
        return ValidationResult(errors=issues.items())

    required: list[str] = []
    for raw_field in as_list(template.get("required_fields")):
        field_name = as_trimmed_str(raw_field)
        if field_name and field_name not in required:
            required.append(field_name)
    if len(required) < MIN_INTAKE_FIELDS:
        issues.add(
            IntakeTemplateErrorCode.INTAKE_TEMPLATE_REQUIRED_FIELDS_WEAK,
            f"required_fields must list at least {MIN_INTAKE_FIELDS} unique field names",
            minimum=MIN_INTAKE_FIELDS,
        )

    fields = template.get("fields")
    if not isinstance(fields, Mapping):
        issues.add(
            IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELDS_MISSING,
            "fields must be an object keyed by field name",
        )
        return ValidationResult(errors=issues.items())

    for field_name in required:
        definition = fields.get(field_name)
        if not isinstance(definition, Mapping):
            issues.add(
                IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELD_UNDEFINED,
                f"required field {field_name} is not defined in fields",
                field=field_name,
            )
            continue
        for attribute in ("type", "description"):
            if not as_trimmed_str(definition.get(attribute)):
                issues.add(
                    IntakeTemplateErrorCode.INTAKE_TEMPLATE_FIELD_INVALID,
                    f"field {field_name} requires a non-empty {attribute}",
                    field=field_name,
                    attribute=attribute,
                )

    return ValidationResult(errors=issues.items())


__all__ = [
    "IntakeTemplateErrorCode",
    "ModuleLifecycleErrorCode",
    "REQUIRED_MODULE_CLASSES",
    "validate_module_lifecycle_policy",
    "validate_module_request_intake_template",
]
