# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints for JSON-serializable values"""

from typing import Dict, List, Union

JsonableTypes = (str, int, float, bool, dict, list)
# A convenient type hint for JSON-serializable values
Jsonable = Union[str, int, float, bool, None, Dict[str, 'Jsonable'], List['Jsonable']]
JsonableDict = Dict[str, Jsonable]
JsonableList = List[Jsonable]
