import json
import unittest

from discovery.mock_generator import (MAX_COLUMNS, MIN_COLUMNS, PRESETS, WIDE_COLUMN_TIERS,
                                      load_schema_mock, simple_hash)


def collect_edges(graph):
    """Edges as a graph renderer draws them: (edge id, source id, target id)."""
    edges = [(r.id, r.from_id, r.to_id) for r in graph.relationships]

    for trigger in graph.triggers:
        edges.append((f"trigger-edge-{trigger.id}", trigger.table_id, trigger.id))
        for table_id in trigger.referenced_tables:
            if table_id != trigger.table_id:
                edges.append((f"trigger-ref-edge-{trigger.id}-{table_id}", trigger.id, table_id))
        for table_id in trigger.affected_tables:
            if table_id != trigger.table_id:
                edges.append((f"trigger-affects-{trigger.id}-{table_id}", trigger.id, table_id))

    for procedure in graph.stored_procedures:
        for table_id in procedure.referenced_tables:
            edges.append((f"proc-edge-{procedure.id}-{table_id}", table_id, procedure.id))
        for table_id in procedure.affected_tables:
            edges.append((f"proc-affects-{procedure.id}-{table_id}", procedure.id, table_id))

    for function in graph.scalar_functions:
        for table_id in function.referenced_tables:
            edges.append((f"func-edge-{function.id}-{table_id}", table_id, function.id))

    return edges


class TestMockGenerator(unittest.TestCase):
    """Deterministic mock graphs for every preset."""

    @classmethod
    def setUpClass(cls):
        cls.graphs = {size: load_schema_mock(size) for size in PRESETS}

    def test_hash_wraps_at_64_bits(self):
        self.assertEqual(simple_hash(0, 0), 0)
        self.assertLess(simple_hash(2 ** 63, 12345), 2 ** 64)
        h = 2654435761
        self.assertEqual(simple_hash(1, 0), h ^ (h >> 16))

    def test_preset_sizes(self):
        for size, config in PRESETS.items():
            graph = self.graphs[size]
            self.assertEqual(len(graph.tables), config.tables, size)
            self.assertEqual(len(graph.views), config.views, size)
            self.assertEqual(len(graph.relationships), min(config.relationships, config.tables * 2), size)
            self.assertEqual(len(graph.triggers), config.triggers, size)
            self.assertEqual(len(graph.stored_procedures), config.procedures, size)
            self.assertEqual(len(graph.scalar_functions), config.functions, size)

    def test_same_preset_is_byte_identical(self):
        for size in PRESETS:
            first = json.dumps(self.graphs[size].to_dict())
            second = json.dumps(load_schema_mock(size).to_dict())
            self.assertEqual(first, second, size)

    def test_column_counts_within_range(self):
        for size, graph in self.graphs.items():
            for node in [*graph.tables, *graph.views]:
                self.assertTrue(MIN_COLUMNS <= len(node.columns) <= MAX_COLUMNS,
                                f"{node.id} has {len(node.columns)} columns in {size}")

    def test_first_objects_are_wide(self):
        for size, graph in self.graphs.items():
            if len(graph.tables) >= len(WIDE_COLUMN_TIERS):
                self.assertEqual([len(t.columns) for t in graph.tables[:5]], WIDE_COLUMN_TIERS, size)
            if len(graph.views) >= len(WIDE_COLUMN_TIERS):
                self.assertEqual([len(v.columns) for v in graph.views[:5]], WIDE_COLUMN_TIERS, size)

    def test_object_ids_are_unique(self):
        for size, graph in self.graphs.items():
            ids = graph.object_ids()
            self.assertEqual(len(ids), len(set(ids)), size)

    def test_edge_ids_unique_and_endpoints_exist(self):
        for size, graph in self.graphs.items():
            object_ids = set(graph.object_ids())
            seen = set()
            for edge_id, source, target in collect_edges(graph):
                self.assertNotIn(edge_id, seen, f"duplicate edge id {edge_id} in {size}")
                seen.add(edge_id)
                self.assertIn(source, object_ids, f"{edge_id} source missing in {size}")
                self.assertIn(target, object_ids, f"{edge_id} target missing in {size}")

    def test_view_columns_carry_lineage(self):
        graph = self.graphs["small"]
        table_ids = {t.id for t in graph.tables}
        for view in graph.views:
            self.assertTrue(set(view.referenced_tables) <= table_ids)
            for column in view.columns:
                self.assertIn(column.source_table, view.referenced_tables)
                self.assertIsNotNone(column.source_column)

    def test_triggers_fire_on_something(self):
        for trigger in self.graphs["medium"].triggers:
            self.assertTrue(trigger.fires_on_insert or trigger.fires_on_update or trigger.fires_on_delete)
            self.assertIn(trigger.trigger_type, ("AFTER", "INSTEAD OF"))

    def test_tables_have_primary_key_id(self):
        for table in self.graphs["small"].tables:
            self.assertEqual(table.columns[0].name, "Id")
            self.assertTrue(table.columns[0].is_primary_key)

    def test_unknown_size_falls_back_to_small(self):
        self.assertEqual(load_schema_mock("gigantic").to_dict(), self.graphs["small"].to_dict())


if __name__ == '__main__':
    unittest.main()
