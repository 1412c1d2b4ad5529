"""Tests for database adapters."""

import numpy as np
import pytest

from annbench.core.base import VectorDatabase
from annbench.core.errors import DatabaseFailure, InvalidDimension
from annbench.core.types import IndexConfig
from annbench.databases import build_database, get_database_class, list_available_databases, load_database
from annbench.datasets.base import VectorSet
from annbench.metrics.flat import FlatIndex
from annbench.metrics.quality import compute_recall


class TestFactory:
    """Test the adapter registry."""

    def test_unknown_database(self):
        with pytest.raises(ValueError, match="Unknown database"):
            get_database_class("no-such-db")

    def test_faiss_registered(self):
        pytest.importorskip("faiss")
        assert "faiss-ivfpq" in list_available_databases()
        assert get_database_class("FAISS-IVFPQ").__name__ == "FaissIVFPQDatabase"


class TestFaissIVFPQ:
    """Test the FAISS IVF-PQ adapter."""

    @pytest.fixture
    def corpus(self):
        """Create sample vectors for testing."""
        rng = np.random.default_rng(42)
        return VectorSet(rng.normal(size=(2000, 16)))

    @pytest.fixture
    def queries(self):
        """Create sample queries."""
        rng = np.random.default_rng(43)
        return VectorSet(rng.normal(size=(10, 16)))

    @pytest.fixture
    def db(self, corpus):
        pytest.importorskip("faiss")
        return build_database(
            "faiss-ivfpq", corpus, IndexConfig(num_partitions=16, num_divisions=4, num_codes=16)
        )

    def test_build(self, db):
        assert isinstance(db, VectorDatabase)
        assert db.num_vectors == 2000
        assert db.dimension == 16
        assert db.info.index_type == "IVF_PQ"

    def test_search(self, db, queries):
        result = db.search(queries[0], 10, nprobe=4)
        assert len(result) == 10
        assert len(set(result.indices)) == 10
        assert all(0 <= i < 2000 for i in result.indices)
        assert result.distances == sorted(result.distances)

    def test_full_probe_finds_true_neighbors(self, db, corpus, queries):
        flat = FlatIndex(corpus)
        recall = np.mean([compute_recall(db.search(q, 10, 16), flat.search(q, 10)) for q in queries])
        assert recall > 0

    def test_search_k_zero(self, db, queries):
        assert len(db.search(queries[0], 0, 4)) == 0

    def test_search_dimension_mismatch(self, db):
        with pytest.raises(InvalidDimension):
            db.search(np.zeros(8, dtype=np.float32), 10, 4)

    def test_save_and_load(self, db, queries, tmp_path):
        path = tmp_path / "index" / "ivfpq.index"
        db.save(str(path))
        assert path.stat().st_size > 0

        loaded = load_database("faiss-ivfpq", str(path))
        assert loaded.num_vectors == db.num_vectors
        assert loaded.search(queries[0], 10, 4).indices == db.search(queries[0], 10, 4).indices

    def test_load_missing(self, tmp_path):
        pytest.importorskip("faiss")
        with pytest.raises(DatabaseFailure) as exc_info:
            load_database("faiss-ivfpq", str(tmp_path / "missing.index"))
        assert exc_info.value.operation == "load"

    def test_index_stats(self, db):
        stats = db.get_index_stats()
        assert stats["index_config"] == {"num_partitions": 16, "num_divisions": 4, "num_codes": 16}
        assert stats["code_size_bytes"] == 2  # 4 divisions * 4 bits

    def test_codes_must_be_power_of_two(self, corpus):
        pytest.importorskip("faiss")
        with pytest.raises(DatabaseFailure, match="power of two"):
            build_database("faiss-ivfpq", corpus, IndexConfig(16, 4, 100))

    def test_divisions_must_divide_dimension(self, corpus):
        pytest.importorskip("faiss")
        with pytest.raises(DatabaseFailure, match="divisible"):
            build_database("faiss-ivfpq", corpus, IndexConfig(16, 5, 16))

    def test_too_few_vectors(self, corpus):
        pytest.importorskip("faiss")
        with pytest.raises(DatabaseFailure, match="too few"):
            build_database("faiss-ivfpq", corpus.head(10), IndexConfig(16, 4, 16))
