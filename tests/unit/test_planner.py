"""Tests del Execution Planner (lógica pura)."""

import pytest

from orbita.core.errors import UnresolvableOrder
from orbita.core.graph import build_graph
from orbita.core.plan import Action, build_plan, diff

from tests.unit.test_differ import records_for


def plan_for(description, records=None):
    graph = build_graph(description)
    records = records or {}
    return build_plan(diff(graph, records), graph, records)


def keys(plan):
    return [op.key for op in plan]


class TestBuildPlan:
    """Orden de las operaciones."""

    def test_creates_follow_dependencies(self, small_stack):
        """Prerequisitos antes que dependientes."""
        plan = plan_for(small_stack)

        assert keys(plan) == ["create:N1", "create:SG", "create:I1"]
        assert plan.prerequisites(plan.get("create:I1")) == frozenset({"create:N1", "create:SG"})

    def test_noop_plan_is_empty(self, small_stack):
        """Sin cambios no hay pasos."""
        plan = plan_for(small_stack, records_for(small_stack))

        assert plan.is_empty

    def test_independent_nodes_sorted_by_id(self):
        """Las operaciones sin relación se ordenan por id."""
        plan = plan_for({f"N{i}": {"kind": "Network"} for i in (3, 1, 2)})

        assert keys(plan) == ["create:N1", "create:N2", "create:N3"]
        assert all(not plan.prerequisites(op) for op in plan)

    def test_replace_is_delete_then_create(self, small_stack):
        """Un Replace sin dependientes afectados: delete y luego create."""
        records = records_for(small_stack)
        small_stack["I1"]["attributes"]["image"] = "ami-2"

        plan = plan_for(small_stack, records)

        assert keys(plan) == ["delete:I1", "create:I1"]
        assert all(op.replacing for op in plan)

    def test_cascading_replace_order(self, small_stack):
        """Borrados de dependientes primero; creaciones de prerequisitos primero."""
        records = records_for(small_stack)
        small_stack["N1"]["attributes"]["cidr_block"] = "10.9.0.0/16"

        plan = plan_for(small_stack, records)

        assert keys(plan) == [
            "delete:I1", "delete:SG", "delete:N1",
            "create:N1", "create:SG", "create:I1",
        ]

    def test_delete_orphans_dependents_first(self, small_stack):
        """Al quitar recursos se borran antes los que dependían de otros."""
        records = records_for(small_stack)

        plan = plan_for({"N1": small_stack["N1"]}, records)

        assert keys(plan) == ["delete:I1", "delete:SG"]
        assert plan.index("SG", Action.DELETE) > plan.index("I1", Action.DELETE)

    def test_destroy_everything(self, small_stack):
        """Un stack vacío borra todo en orden inverso de dependencias."""
        plan = plan_for({}, records_for(small_stack))

        assert keys(plan) == ["delete:I1", "delete:SG", "delete:N1"]

    def test_pure_delete_waits_for_dependent_update(self):
        """Se borra lo que el dependiente deja de usar solo tras actualizarlo."""
        before = {
            "I1": {"kind": "Instance", "attributes": {"image": "ami-1"}},
            "I2": {"kind": "Instance", "attributes": {"image": "ami-1"}},
            "TG": {"kind": "TargetGroup", "attributes": {"port": 80, "targets": ["${I1}", "${I2}"]}},
        }
        records = records_for(before)
        after = {
            "I1": before["I1"],
            "TG": {"kind": "TargetGroup", "attributes": {"port": 80, "targets": ["${I1}"]}},
        }

        plan = plan_for(after, records)

        assert keys(plan) == ["update:TG", "delete:I2"]
        assert "update:TG" in plan.prerequisites(plan.get("delete:I2"))

    def test_replaced_prerequisite_before_updated_dependent(self):
        """El dependiente se actualiza con el id nuevo."""
        before = {
            "I1": {"kind": "Instance", "attributes": {"image": "ami-1"}},
            "TG": {"kind": "TargetGroup", "attributes": {"port": 80, "targets": ["${I1}"]}},
        }
        records = records_for(before)
        before["I1"]["attributes"]["image"] = "ami-2"

        plan = plan_for(before, records)

        assert keys(plan) == ["delete:I1", "create:I1", "update:TG"]

    def test_kind_ordering_constraint(self):
        """Las rutas van después de los gateways aunque no haya arista."""
        plan = plan_for({
            "A-route": {"kind": "Route", "attributes": {"destination_cidr": "0.0.0.0/0"}},
            "Z-gw": {"kind": "Gateway"},
        })

        assert keys(plan) == ["create:Z-gw", "create:A-route"]

    def test_unresolvable_order(self):
        """Restricción de kind contra una arista explícita: ciclo de operaciones."""
        with pytest.raises(UnresolvableOrder) as exc:
            plan_for({
                "R": {"kind": "Route", "attributes": {"destination_cidr": "0.0.0.0/0"}},
                "G": {"kind": "Gateway", "attributes": {"route": "${R}"}},
            })

        assert exc.value.blocked == ["create:G", "create:R"]

    def test_dependents_listing(self, small_stack):
        """dependents() devuelve las operaciones que esperan a una dada."""
        plan = plan_for(small_stack)

        assert [op.key for op in plan.dependents(plan.get("create:N1"))] == ["create:SG", "create:I1"]
