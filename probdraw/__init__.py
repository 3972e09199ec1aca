from probdraw.errors import ParameterError, DomainError
from probdraw.random import UniformStream, as_stream
from probdraw.distributions import *
