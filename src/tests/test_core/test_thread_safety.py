"""
Thread safety tests: concurrent tree mutation, update() and recording
"""

import threading

from shuffleboard.models.enums import BuiltInLayouts, EventImportance


def run_threads(targets):
    threads = [threading.Thread(target=t) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return threads


class TestConcurrentTree:
    """Concurrent callers see a consistent tree"""

    def test_concurrent_get_tab(self, root):
        results = []

        def worker():
            results.append(root.get_tab("Shared"))

        run_threads([worker] * 8)

        assert len(root.get_tabs()) == 1
        assert all(tab is results[0] for tab in results)

    def test_add_while_updating(self, root, namespace, reporter):
        tab = root.get_tab("T")
        layout = tab.get_layout("L", BuiltInLayouts.LIST)
        errors = []

        def adder(prefix):
            def run():
                try:
                    for i in range(50):
                        layout.add(f"{prefix}{i}", i)
                except Exception as e:
                    errors.append(e)

            return run

        def updater():
            try:
                for _ in range(50):
                    root.update()
            except Exception as e:
                errors.append(e)

        run_threads([adder("a"), adder("b"), updater])
        root.update()

        assert errors == []
        assert reporter.error_count == 0
        assert len(layout.get_components()) == 100
        assert namespace.get_value("/Shuffleboard/T/L/a49") == 49.0


class TestConcurrentRecording:
    """Concurrent start/stop never corrupts controller state"""

    def test_concurrent_start(self, dashboard, writes):
        run_threads([dashboard.start_recording] * 8)

        starts = [w for w in writes if w[0].endswith("/RecordData")]
        assert len(starts) == 1
        assert dashboard.recording.is_recording()

    def test_concurrent_markers(self, dashboard, namespace):
        def worker(n):
            return lambda: dashboard.add_event_marker(f"e{n}", "", EventImportance.LOW)

        run_threads([worker(n) for n in range(10)])

        keys = namespace.get_keys("/Shuffleboard/.recording/events/")
        assert len([k for k in keys if k.endswith("/Info")]) == 10
