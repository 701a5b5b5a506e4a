"""
Unit tests for the inference backends, solver adapters and dispatch.

Both solvers are run on tiny grids so that energies can be checked against
brute force and against each other:
- Labels come back in grid shape
- lower_bound <= energy
- Reported energy matches the shared energy functor
- Invalid configurations fail before any work is done
"""

import itertools

import numpy as np
import pytest

import gridcrf
from gridcrf import (
    BackendError,
    ConfigurationError,
    DenseCRF2D,
    DenseMeanFieldSolver,
    PairwiseWeights,
    PottsTRWS,
    SolveConfig,
    SolveResult,
    SparseGraphSolver,
    Solver,
    TRWSOptions,
)
from gridcrf.backends import lattice_features, potts_messages
from gridcrf.solvers import assemble_result, get_solver


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def make_options(solver, channels=3, **overrides):
    options = {
        'solver': solver,
        'gaussian_weight': 3.0,
        'gaussian_x_stddev': 3.0,
        'gaussian_y_stddev': 3.0,
        'bilateral_weight': 10.0,
        'bilateral_x_stddev': 80.0,
        'bilateral_y_stddev': 80.0,
        'bilateral_color_stddevs': [13.0] * channels,
    }
    options.update(overrides)
    return options


@pytest.fixture(scope="module")
def problem():
    p, _ = gridcrf.create_synthetic_problem(shape=(4, 4), num_labels=3, seed=7)
    return p


@pytest.fixture(scope="module")
def model(problem):
    weights = PairwiseWeights.from_options(make_options('MF'))
    return gridcrf.CostModel.from_arrays(problem.image, problem.unary, problem.im_size, weights)


def brute_force_minimum(model):
    """Exact minimum energy by enumeration (tiny models only)."""
    best = np.inf
    for labels in itertools.product(range(model.num_labels), repeat=model.num_variables):
        best = min(best, model.energy(np.array(labels)))
    return best


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    """Small problems with known answers."""

    unary = np.array([[0, 1, 1, 0], [1, 0, 0, 1]], dtype=np.float32)
    image = np.zeros((2, 2, 3), dtype=np.uint8)

    @pytest.mark.parametrize("solver", ['MF', 'TRWS'])
    def test_zero_pairwise_gives_unary_argmin(self, solver):
        options = make_options(solver, gaussian_weight=0, bilateral_weight=0, iterations=5)
        result = gridcrf.solve(self.image, self.unary, (2, 2, 3), options)

        assert result.labels.shape == (2, 2)
        assert result.labeling.tolist() == [0, 1, 1, 0]
        assert result.energy == pytest.approx(0.0)
        assert result.lower_bound == pytest.approx(0.0)
        assert result.solver == solver

    def test_uniform_unary_gives_constant_labeling(self):
        unary = np.zeros((3, 9), dtype=np.float32)
        image = np.full((3, 3, 3), 128, dtype=np.uint8)
        result = gridcrf.solve(image, unary, (3, 3, 3), make_options('TRWS', iterations=10))

        assert np.unique(result.labels).size == 1
        assert result.energy == pytest.approx(0.0)
        assert result.lower_bound <= result.energy + 1e-9

    def test_threshold_above_max_cost_gives_unary_argmin(self, problem, model):
        threshold = model.pairwise.max_cost() + 1.0
        options = make_options('TRWS', min_pairwise_cost=threshold)
        result = gridcrf.solve_problem(problem, options)

        table = problem.unary.reshape(problem.num_labels, -1)
        assert result.metadata['num_edges'] == 0
        assert np.array_equal(result.labeling, np.argmin(table, axis=0))
        trivial = gridcrf.lowest_unary_cost(table)
        assert result.energy == pytest.approx(trivial)
        assert result.lower_bound == pytest.approx(trivial)


# ---------------------------------------------------------------------------
# Parameterized contract tests for both adapters
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name", ['MF', 'TRWS'])
class TestSolverInterface:
    """Verify that both adapters fulfil the Solver contract."""

    def test_inherits_from_base(self, name):
        assert isinstance(get_solver(name), Solver)
        assert get_solver(name).name == name

    def test_returns_solve_result(self, name, problem):
        result = gridcrf.solve_problem(problem, make_options(name, iterations=5))
        assert isinstance(result, SolveResult)
        assert result.labels.shape == (4, 4)
        assert result.labels.dtype == np.int32
        assert result.labels.min() >= 0 and result.labels.max() < 3
        assert result.iterations == 5

    def test_bound_below_energy(self, name, problem):
        result = gridcrf.solve_problem(problem, make_options(name, iterations=5))
        assert result.lower_bound <= result.energy + 1e-9
        assert result.gap >= -1e-9

    def test_energy_matches_functor(self, name, problem, model):
        # every pair has a non-negative cost, so TRWS keeps them all at threshold 0
        result = gridcrf.solve_problem(problem, make_options(name, iterations=5))
        assert result.energy == pytest.approx(model.energy(result.labels), rel=1e-9)

    def test_timings_recorded(self, name, problem):
        result = gridcrf.solve_problem(problem, make_options(name, iterations=2))
        assert f"Solving with {name}." in result.metadata['timings']

    def test_quiet_without_debug(self, name, problem, capsys):
        gridcrf.solve_problem(problem, make_options(name, iterations=12))
        assert capsys.readouterr().out == ""

    def test_debug_output(self, name, problem, capsys):
        gridcrf.solve_problem(problem, make_options(name, iterations=2, debug=True))
        out = capsys.readouterr().out
        assert "Reading data." in out
        assert f"Solving with {name}." in out


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class TestDispatch:

    def test_registry(self):
        assert set(gridcrf.SOLVERS) == {'MF', 'TRWS'}
        assert isinstance(get_solver('MF'), DenseMeanFieldSolver)
        assert isinstance(get_solver('TRWS'), SparseGraphSolver)

    @pytest.mark.parametrize("name", ['XYZ', 'Mf', 'trws'])
    def test_unknown_solver(self, name, problem):
        with pytest.raises(ConfigurationError):
            get_solver(name)
        with pytest.raises(ConfigurationError):
            gridcrf.solve_problem(problem, make_options(name))

    def test_unknown_solver_checked_before_inputs(self):
        # the unary table is malformed too; the solver name must fail first
        with pytest.raises(ConfigurationError, match='Unknown solver'):
            gridcrf.solve(np.zeros((2, 2, 3)), np.zeros(3), (2, 2, 3), make_options('XYZ'))

    def test_invalid_inputs(self, problem):
        with pytest.raises(ConfigurationError):
            gridcrf.solve(problem.image, problem.unary[:, :5], problem.im_size,
                          make_options('TRWS'))

    def test_channel_mismatch(self, problem):
        with pytest.raises(ConfigurationError):
            gridcrf.solve_problem(problem, make_options('MF', channels=1))


# ---------------------------------------------------------------------------
# TRW-S backend
# ---------------------------------------------------------------------------

class TestPottsTRWS:

    def test_potts_messages(self):
        m = potts_messages(np.array([[0.0, 1.0, 2.0]]), np.array([0.5]))
        assert np.allclose(m, [[0.0, 0.5, 0.5]])

    def test_single_edge_is_exact(self):
        mrf = PottsTRWS(num_labels=3)
        a = mrf.add_node([0.0, 1.0, 2.0])
        b = mrf.add_node([2.0, 0.0, 1.0])
        mrf.add_edge(a, b, 0.5)
        energy, bound = mrf.minimize(TRWSOptions(iter_max=10))

        assert [mrf.get_solution(a), mrf.get_solution(b)] == [0, 1]
        assert energy == pytest.approx(0.5)
        assert bound == pytest.approx(0.5)
        assert mrf.converged

    def test_edges_added_in_chunks(self):
        mrf = PottsTRWS(num_labels=3)
        mrf.add_nodes(np.array([[0.0, 1.0, 2.0], [2.0, 0.0, 1.0], [1.0, 2.0, 0.0]]))
        mrf.add_edges(np.array([0]), np.array([1]), np.array([0.5]))
        mrf.add_edges(np.array([2, 1]), np.array([0, 2]), np.array([0.25, 0.25]))
        assert mrf.num_edges == 3

        energy, bound = mrf.minimize(TRWSOptions(iter_max=20))
        assert mrf.solution.tolist() == [0, 1, 2]
        assert energy == pytest.approx(1.0)
        assert bound <= energy + 1e-9

    def test_bound_brackets_optimum(self, model):
        small = gridcrf.CostModel.from_arrays(
            np.asarray(model.pairwise.colors).reshape(4, 4, 3)[:2, :3],
            model.unary.table[:2].reshape(2, 4, 4)[:, :2, :3],
            (2, 3, 3),
            model.weights,
        )
        optimum = brute_force_minimum(small)
        result = SparseGraphSolver().solve(small, SolveConfig('TRWS', small.weights, iterations=20))

        assert result.lower_bound <= optimum + 1e-9
        assert result.energy >= optimum - 1e-9

    def test_isolated_nodes(self):
        mrf = PottsTRWS(num_labels=2)
        mrf.add_nodes(np.array([[1.0, 0.0], [0.0, 3.0]]))
        energy, bound = mrf.minimize()
        assert mrf.solution.tolist() == [1, 0]
        assert energy == pytest.approx(0.0)
        assert bound == pytest.approx(0.0)

    def test_errors(self):
        mrf = PottsTRWS(num_labels=2)
        with pytest.raises(BackendError):
            mrf.minimize()
        with pytest.raises(ValueError):
            mrf.add_node([1.0, 2.0, 3.0])

        a = mrf.add_node([0.0, 1.0])
        b = mrf.add_node([1.0, 0.0])
        with pytest.raises(ValueError):
            mrf.add_edge(a, a, 1.0)
        with pytest.raises(ValueError):
            mrf.add_edge(a, b, -1.0)
        with pytest.raises(ValueError):
            mrf.add_edge(a, 5, 1.0)
        with pytest.raises(BackendError):
            mrf.get_solution(a)
        with pytest.raises(BackendError):
            mrf.minimize(TRWSOptions(iter_max=0))

    def test_print_schedule(self, capsys):
        mrf = PottsTRWS(num_labels=2)
        mrf.add_nodes(np.array([[0.0, 0.0], [0.0, 0.0]]))
        mrf.add_edge(0, 1, 1.0)
        mrf.minimize(TRWSOptions(iter_max=3, print_min_iter=5))
        assert capsys.readouterr().out == ""


# ---------------------------------------------------------------------------
# Sparse graph construction
# ---------------------------------------------------------------------------

class TestPottsGraph:

    def test_full_graph_at_zero_threshold(self, model):
        graph = gridcrf.build_potts_graph(model, 0.0)
        assert graph.num_pairs == 16 * 15 // 2
        assert graph.num_edges == graph.num_pairs

    def test_no_self_edges(self, model):
        graph = gridcrf.build_potts_graph(model, 0.5)
        assert np.all(graph.tails < graph.heads)
        assert np.all(graph.weights >= 0.5)

    def test_edge_count_monotone(self, model):
        thresholds = [0.0, 0.1, 1.0, 5.0, 12.0, np.inf]
        counts = [gridcrf.build_potts_graph(model, t).num_edges for t in thresholds]
        assert all(a >= b for a, b in zip(counts, counts[1:]))
        assert counts[-1] == 0

    def test_edge_weights_match_kernel(self, model):
        graph = gridcrf.build_potts_graph(model, 1.0)
        grid = model.grid
        for e in range(0, graph.num_edges, 7):
            a = grid.to_coord(graph.tails[e])
            b = grid.to_coord(graph.heads[e])
            assert graph.weights[e] == pytest.approx(model.pairwise.cost(a, b))

    def test_metadata(self, problem):
        result = gridcrf.solve_problem(problem, make_options('TRWS', min_pairwise_cost=2.0,
                                                             iterations=3))
        assert result.metadata['num_pairs'] == 120
        assert result.metadata['num_edges'] <= 120
        assert result.metadata['min_pairwise_cost'] == 2.0
        assert result.metadata['bound_type'] == 'trws_dual'
        assert 1 <= result.metadata['backend_iterations'] <= 3


# ---------------------------------------------------------------------------
# Mean-field backend
# ---------------------------------------------------------------------------

class TestDenseCRF:

    def test_lattice_features(self):
        rng = np.random.default_rng(0)
        features = rng.normal(size=(5, 2))
        lattice = lattice_features(features)
        assert lattice.shape == (2, 5)
        assert lattice.dtype == np.float32
        assert lattice.flags['C_CONTIGUOUS']

        # the lattice kernel exp(-1/2 d^2) on scaled features is exp(-d^2) on the originals
        for i, j in [(0, 1), (2, 4), (3, 0)]:
            lattice_value = np.exp(-0.5 * np.sum((lattice[:, i] - lattice[:, j]) ** 2))
            model_value = np.exp(-np.sum((features[i] - features[j]) ** 2))
            assert lattice_value == pytest.approx(model_value, rel=1e-5)

    def test_unknown_normalization(self):
        crf = DenseCRF2D(2, 2, 2)
        with pytest.raises(ValueError):
            crf.add_pairwise_gaussian(3, 3, 1.0, normalization='L1')

        d2 = np.sum((features[:, None, :] - features[None, :, :]) ** 2, axis=2)
        K = np.exp(-d2)
        np.fill_diagonal(K, 0.0)
        assert np.allclose(kernel.apply(values), K @ values)

    @pytest.mark.parametrize("normalization", [
        'NO_NORMALIZATION', 'NORMALIZE_SYMMETRIC', 'NORMALIZE_BEFORE', 'NORMALIZE_AFTER',
    ])
    def test_marginals_normalized(self, model, normalization):
        crf = DenseMeanFieldSolver().build_backend(
            model, SolveConfig('MF', model.weights, normalization=normalization))
        Q = crf.inference(3)
        assert Q.shape == (3, 16)
        assert np.allclose(Q.sum(axis=0), 1.0)

    def test_zero_weight_kernel_skipped(self):
        crf = DenseCRF2D(2, 2, 2)
        crf.add_pairwise_gaussian(3, 3, 0.0)
        assert crf.num_kernels == 0

    def test_smoothing(self):
        unary = np.array([[0, 0, 0, 0, 0.2], [1, 1, 1, 1, 0]], dtype=np.float64)
        crf = DenseCRF2D(1, 5, 2)
        crf.set_unary_energy(unary)
        crf.add_pairwise_gaussian(10, 10, 5.0)
        assert crf.map(5).tolist() == [0, 0, 0, 0, 0]

    def test_errors(self):
        crf = DenseCRF2D(2, 2, 2)
        with pytest.raises(BackendError):
            crf.inference(3)
        crf.set_unary_energy(np.zeros((2, 4)))
        with pytest.raises(BackendError):
            crf.inference(0)

    def test_bound_is_unary_minimum(self, problem, model):
        result = gridcrf.solve_problem(problem, make_options('MF', iterations=3))
        assert result.lower_bound == pytest.approx(gridcrf.lowest_unary_cost(model.unary))
        assert result.metadata['bound_type'] == 'unary_minimum'
        assert result.metadata['num_kernels'] == 2


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TestSolveResult:

    def test_properties(self):
        result = SolveResult(labels=np.array([[0, 1], [1, 0]]), energy=4.0, lower_bound=3.0)
        assert result.labeling.tolist() == [0, 1, 1, 0]
        assert result.shape == (2, 2)
        assert result.gap == 1.0
        assert result.relative_gap == pytest.approx(0.25)

    def test_assemble_result(self):
        grid = gridcrf.GridIndex(2, 3, 1, 4)
        result = assemble_result(np.arange(6) % 4, 1.0, 0.5, grid, solver='MF')
        assert result.labels.shape == (2, 3)
        assert result.labels[1].tolist() == [3, 0, 1]

    def test_assemble_result_wrong_size(self):
        grid = gridcrf.GridIndex(2, 3, 1, 4)
        with pytest.raises(ValueError):
            assemble_result(np.zeros(5), 1.0, 0.5, grid)

    def test_save_result_npz(self, problem, tmp_path):
        result = gridcrf.solve_problem(problem, make_options('TRWS', iterations=2))
        path = gridcrf.save_result_npz(result, tmp_path / 'result.npz')
        with np.load(path, allow_pickle=False) as data:
            assert np.array_equal(data['labels'], result.labels)
            assert float(data['energy']) == pytest.approx(result.energy)
            assert str(data['solver']) == 'TRWS'

    def test_save_result_mat(self, problem, tmp_path):
        scipy_io = pytest.importorskip("scipy.io")
        result = gridcrf.solve_problem(problem, make_options('MF', iterations=2))
        path = gridcrf.save_result_mat(result, tmp_path / 'result.mat')
        data = scipy_io.loadmat(str(path))
        assert data['result'].shape == (4, 4)
        assert data['energy'].item() == pytest.approx(result.energy)


# ---------------------------------------------------------------------------
# Command line interface
# ---------------------------------------------------------------------------

class TestCLI:

    def test_generate_solve_info(self, tmp_path):
        from gridcrf.cli import main

        problem_path = tmp_path / 'problem.npz'
        result_path = tmp_path / 'result.npz'
        assert main(['generate', '-o', str(problem_path), '--shape', '4', '4',
                     '--seed', '0']) == 0
        assert main(['solve', str(problem_path), '-o', str(result_path),
                     '--solver', 'TRWS', '--iterations', '3']) == 0
        assert result_path.exists()
        assert main(['info', str(result_path)]) == 0
        assert main(['info', str(problem_path)]) == 0

    def test_generate_mat_matches_npz(self, tmp_path):
        pytest.importorskip("scipy.io")
        from gridcrf.cli import main

        args = ['--shape', '3', '4', '--labels', '3', '--seed', '2']
        assert main(['generate', '-o', str(tmp_path / 'p.npz')] + args) == 0
        assert main(['generate', '-o', str(tmp_path / 'p.mat')] + args) == 0
        from_npz = gridcrf.load_problem(tmp_path / 'p.npz')
        from_mat = gridcrf.load_problem(tmp_path / 'p.mat')
        assert np.array_equal(from_mat.unary, from_npz.unary)
        assert np.array_equal(from_mat.image, from_npz.image)

    def test_solve_unknown_solver(self, tmp_path):
        from gridcrf.cli import main

        problem_path = tmp_path / 'problem.npz'
        main(['generate', '-o', str(problem_path), '--shape', '3', '3', '--seed', '0'])
        assert main(['solve', str(problem_path), '-o', str(tmp_path / 'r.npz'),
                     '--solver', 'XYZ']) == 1

    def test_solve_missing_file(self, tmp_path):
        from gridcrf.cli import main

        assert main(['solve', str(tmp_path / 'missing.npz'), '-o', str(tmp_path / 'r.npz'),
                     '--solver', 'MF']) == 1

    def test_no_command(self):
        from gridcrf.cli import main

        assert main([]) == 0


# ---------------------------------------------------------------------------
# Convenience: top-level imports work
# ---------------------------------------------------------------------------

class TestTopLevelImports:
    def test_import_solvers(self):
        from gridcrf import DenseMeanFieldSolver, SparseGraphSolver  # noqa: F811
        from gridcrf import solve, solve_problem, SOLVERS  # noqa: F401

    def test_import_backends(self):
        from gridcrf import DenseCRF2D, PottsTRWS, TRWSOptions  # noqa: F811
        assert PottsTRWS is not None

    def test_version(self):
        assert gridcrf.__version__
