# chomptraj

Trajectory optimization with the CHOMP method. A trajectory is an `N`-by-`M`
array of waypoints between two fixed endpoints. It is smoothed by minimizing
either velocity or acceleration. An extra cost, such as obstacle cost, can be
added through a gradient helper. Per-timestep equality constraints can be
imposed, and the trajectory can be refined by repeated upsampling from
`n` to `2n + 1` waypoints (multigrid).

## Installation

```
pip install .
```

Install with `pip install .[test]` to get the test dependencies, then run
`pytest`.

## Command-line demo

The package installs one command, `chomptraj-circle`. It optimizes a
straight-line trajectory from (-3, 5) to (5, -3). The middle half of the path
is constrained to lie on the circle of radius 2 around the origin.

```
chomptraj-circle
chomptraj-circle -n 15 -t 127 -e 1e-7
chomptraj-circle --no-multigrid
chomptraj-circle --help
```

Options:

- `-n`, `--num-initial`: number of steps in the initial trajectory (default 15)
- `-t`, `--num-final`: minimum number of steps in the final trajectory (default 127)
- `-e`, `--error-tol`: relative error tolerance (default 1e-7)
- `-a`, `--alpha`: step size (default 0.05)
- `-m`, `--no-multigrid`: start at the final resolution; this also turns off local smoothing
- `-g`, `--no-global`: turn off global smoothing
- `-l`, `--no-local`: turn off local smoothing
- `-p`, `--pdf`: accepted, but has no effect (see below)
- `-h`, `--help`: print the usage text

The command prints its settings, and then one line for each optimizer event
through `DebugChompObserver`. It exits with status 1 on a bad option or an
invalid size.

## Library use

```python
from chomptraj.chomp import Chomp, DebugChompObserver
from chomptraj.circle_demo import CircleFactory, generate_initial_traj

xi, q0, q1 = generate_initial_traj(15)
chomper = Chomp(CircleFactory(), xi, q0, q1, 127, 0.05, 1e-7)
chomper.observer = DebugChompObserver()
chomper.solve(True, True)
print(chomper.xi.shape)   # (127, 2)
```

### `chomptraj.chomp`

- `Chomp(factory, xi_init, q0, q1, max_n, alpha, obj_rel_err_tol,
  max_global_iter=100, max_local_iter=100, t_total=1.0)` is the optimizer.
  `solve(global_smoothing, local_smoothing)` optimizes the trajectory and
  upsamples it until it has at least `max_n` steps. `run_chomp`,
  `chomp_global`, `local_smooth` and `upsample` are the individual stages.
  `constrained_upsample_to(n_max, htol, hstep)` upsamples and projects the
  new points onto their constraints. Set `objective_type` to an
  `ObjectiveType` (`MINIMIZE_VELOCITY` or `MINIMIZE_ACCELERATION`, which is
  the default). Set `ghelper` to a `ChompGradientHelper` to add extra cost.
- `ChompObserver.notify(...)` receives `ChompEventType` events (`INIT`,
  `GLOBAL_ITER`, `LOCAL_ITER`, `FINISH`). A truthy return value stops the
  current loop. `DebugChompObserver` prints every event to a stream (standard
  output by default). It stops the loop once an objective stops being finite.
- `ChompCollisionHelper` is an abstract class: implement `get_cost(q,
  body_index)` to return a cost, a workspace Jacobian and a cost gradient.
  `ChompCollGradHelper(chelper, gamma)` turns such a helper into an obstacle
  term that is integrated along the workspace path.

### `chomptraj.constraints`

`Constraint` (abstract), `NullConstraint` and `ConstantConstraint(index,
value)`. `ConstraintFactory` is abstract: implement `get_constraint(t, total)`.
Its `evaluate(constraints, xi, step)` stacks the per-timestep constraints into
one residual vector and one Jacobian.

### `chomptraj.matops`

Symmetric band matrices described by their coefficients: `[-1, 2]` for
velocity and `[1, -4, 6]` for acceleration.

- `band_matrix`, `diag_mul`
- band Cholesky factorization and solve: `skyline_chol`, `skyline_chol_solve`
- the boundary terms of the objective: `create_b_matrix`, `get_pos`
- dense reference routines: `regular_chol`, `regular_chol_solve`, `rel_err`

### Geometry helpers

- `chomptraj.vec3.Vec3`
- `chomptraj.box2.Box2`, with line clipping through `clip_line` and `clip_segment`
- `chomptraj.transform2.Transform2` and `chomptraj.transform2.Affine2`
- `chomptraj.grid3.Grid3`, with trilinear sampling
- `chomptraj.angles`: `clamp_angle`, `delta_angle`, `interp_angle`
- `chomptraj.bits`: `nlz`, `bin2gray`, `gray2bin`

## What the package does not do

- It draws nothing. It writes no PDF, image or plot of a trajectory. The
  `--pdf` option of the demo is accepted and ignored.
- It does not load obstacle maps or images, and it ships no ready-made
  collision model. Obstacle costs come only from a `ChompCollisionHelper`
  that you write yourself.