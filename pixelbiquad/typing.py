from __future__ import annotations

from typing import Any, TypeAlias

import numpy as np
import numpy.typing as npt

NDArrayFloat: TypeAlias = npt.NDArray[np.floating[Any]]
NDArrayInt: TypeAlias = npt.NDArray[np.integer[Any]]
NDArrayUInt8: TypeAlias = npt.NDArray[np.uint8]
NDArrayBool: TypeAlias = npt.NDArray[np.bool_]
