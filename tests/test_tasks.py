"""Tests for the background CSV import task, called in-process."""

from mealdeal.tasks.imports import import_csv_task


class TestImportCSVTask:
    """Tests for import_csv_task.

    Calling the task object runs it in the current process without a broker
    or result backend.
    """

    def test_dry_run(self):
        result = import_csv_task("chains", "chain_id,chain_name\nC1,Aldi\n", dry_run=True)

        assert result["valid_rows"] == 1
        assert result["imported"] is None
        assert result["errors"] == []

    def test_rejected_file_is_reported(self):
        result = import_csv_task("chains", "chain_id\nC1\n")

        assert result["valid_rows"] == 0
        assert result["imported"] == 0
        assert "chain_name" in result["errors"][0]
