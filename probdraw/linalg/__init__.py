from .linop import LinOp, TriangularLinOp, CholeskyLinOp
from .operations import (
    robust_cholesky,
    gram,
    outer_gram,
    tri_solve,
    log_det_tri,
    trace_Ainv_B,
    mah_dist_squared,
)
from .utils import (
    add_diag_jitter,
    symmetrize,
    is_symmetric,
    is_positive_semidefinite,
    is_positive_definite,
    is_upper_triangular,
)
