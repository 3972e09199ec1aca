from .stream import UniformStream, as_stream
