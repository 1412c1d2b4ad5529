"""Tests for vector sets and the fvecs format."""

import struct

import numpy as np
import pytest

from annbench.core.errors import InvalidDimension, LoadFailure
from annbench.datasets import (
    VectorSet,
    generate_random_dataset,
    generate_vectors,
    load_vector_set,
    read_fvecs,
    write_fvecs,
)


def write_raw(path, records):
    """Write (dimension, values) records without validation."""
    with open(path, "wb") as f:
        for dim, values in records:
            f.write(struct.pack("<i", dim))
            f.write(struct.pack(f"<{len(values)}f", *values))


class TestFvecs:
    """Test reading and writing .fvecs files."""

    def test_read_known_bytes(self, tmp_path):
        path = tmp_path / "two.fvecs"
        write_raw(path, [(3, [1.0, 2.0, 3.0]), (3, [-1.5, 0.0, 4.25])])

        data = read_fvecs(path)
        assert data.dtype == np.float32
        np.testing.assert_array_equal(data, [[1.0, 2.0, 3.0], [-1.5, 0.0, 4.25]])

    def test_write_then_read(self, tmp_path):
        vectors = generate_vectors(50, 12, seed=1)
        path = tmp_path / "nested" / "v.fvecs"
        write_fvecs(path, vectors)

        assert path.stat().st_size == 50 * (12 + 1) * 4
        np.testing.assert_array_equal(read_fvecs(path), vectors)

    def test_expected_dimensions(self, tmp_path):
        path = tmp_path / "v.fvecs"
        write_fvecs(path, np.zeros((2, 4), dtype=np.float32))

        assert read_fvecs(path, dimensions=4).shape == (2, 4)
        with pytest.raises(LoadFailure, match="expected 128 but got 4"):
            read_fvecs(path, dimensions=128)

    def test_truncated_record(self, tmp_path):
        path = tmp_path / "short.fvecs"
        write_raw(path, [(3, [1.0, 2.0, 3.0]), (3, [1.0, 2.0])])
        with pytest.raises(LoadFailure, match="truncated"):
            read_fvecs(path)

    def test_partial_word(self, tmp_path):
        path = tmp_path / "odd.fvecs"
        write_raw(path, [(2, [1.0, 2.0])])
        with open(path, "ab") as f:
            f.write(b"\x00\x01")
        with pytest.raises(LoadFailure, match="truncated"):
            read_fvecs(path)

    def test_inconsistent_dimensions(self, tmp_path):
        path = tmp_path / "mixed.fvecs"
        # Same record length, different prefix
        write_raw(path, [(2, [1.0, 2.0]), (5, [1.0, 2.0])])
        with pytest.raises(LoadFailure, match="inconsistent vector size at vector 1"):
            read_fvecs(path)

    def test_invalid_dimension_prefix(self, tmp_path):
        path = tmp_path / "zero.fvecs"
        write_raw(path, [(0, [])])
        with pytest.raises(LoadFailure, match="invalid vector size"):
            read_fvecs(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.fvecs"
        path.write_bytes(b"")
        with pytest.raises(LoadFailure, match="empty"):
            read_fvecs(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadFailure) as exc_info:
            read_fvecs(tmp_path / "missing.fvecs")
        assert exc_info.value.path.endswith("missing.fvecs")

    def test_write_rejects_1d(self, tmp_path):
        with pytest.raises(ValueError):
            write_fvecs(tmp_path / "bad.fvecs", np.zeros(4))


class TestVectorSet:
    """Test the read-only vector collection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.data = np.arange(20, dtype=np.float64).reshape(5, 4)
        self.vectors = VectorSet(self.data, name="test")

    def test_shape(self):
        assert len(self.vectors) == 5
        assert self.vectors.dimension == 4
        assert self.vectors.data.dtype == np.float32

    def test_read_only(self):
        with pytest.raises(ValueError):
            self.vectors.data[0, 0] = 1.0
        with pytest.raises(ValueError):
            self.vectors[0][0] = 1.0

    def test_copy_isolates_source(self):
        self.data[0, 0] = 99.0
        assert self.vectors[0][0] == 0.0

    def test_head(self):
        head = self.vectors.head(2)
        assert len(head) == 2
        np.testing.assert_array_equal(head.data, self.vectors.data[:2])
        assert len(self.vectors.head(100)) == 5

    def test_iteration(self):
        assert [int(v[0]) for v in self.vectors] == [0, 4, 8, 12, 16]

    def test_check_dimension(self):
        self.vectors.check_dimension(np.zeros(4))
        with pytest.raises(InvalidDimension):
            self.vectors.check_dimension(np.zeros(3))
        with pytest.raises(InvalidDimension):
            self.vectors.check_dimension(np.zeros((1, 4)))

    def test_rejects_1d(self):
        with pytest.raises(ValueError):
            VectorSet(np.zeros(4))

    def test_load_vector_set(self, tmp_path):
        path = tmp_path / "base.fvecs"
        write_fvecs(path, self.data)
        loaded = load_vector_set(path, dimensions=4)
        assert loaded.name == "base.fvecs"
        assert len(loaded) == 5
        assert not loaded.data.flags.writeable


class TestRandomDataset:
    """Test synthetic data generation."""

    def test_generate_vectors_reproducible(self):
        a = generate_vectors(10, 8, seed=3)
        b = generate_vectors(10, 8, seed=3)
        np.testing.assert_array_equal(a, b)
        assert a.dtype == np.float32
        assert a.shape == (10, 8)

    def test_uniform_range(self):
        vectors = generate_vectors(100, 4, distribution="uniform")
        assert vectors.min() >= -1.0
        assert vectors.max() < 1.0

    def test_normalize(self):
        vectors = generate_vectors(10, 8, normalize=True)
        np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), 1.0, rtol=1e-5)

    def test_unknown_distribution(self):
        with pytest.raises(ValueError):
            generate_vectors(1, 1, distribution="zipf")

    def test_generate_dataset(self, tmp_path):
        base_path, query_path = generate_random_dataset(
            tmp_path, num_vectors=100, num_queries=10, dimensions=8, seed=5
        )
        base = read_fvecs(base_path)
        queries = read_fvecs(query_path)
        assert base.shape == (100, 8)
        assert queries.shape == (10, 8)
        assert not np.array_equal(base[:10], queries)

    def test_existing_dataset_kept(self, tmp_path):
        base_path, _ = generate_random_dataset(tmp_path, num_vectors=20, num_queries=2, dimensions=4)
        before = read_fvecs(base_path)
        generate_random_dataset(tmp_path, num_vectors=20, num_queries=2, dimensions=4, seed=99)
        np.testing.assert_array_equal(read_fvecs(base_path), before)
