"""
Objective-J Language Definitions (Symbol Tables)
================================================

This module holds the compile-time model of the Objective-J declarations
seen so far: classes, protocols, methods, instance variables and typedefs.

The model is persistent across compilation units. A SymbolTables instance
can be created once and handed to every Compiler in a multi-file build,
so that classes declared in earlier files are visible to later ones.

Method Lookup
-------------
Classes form a single superclass chain; protocols form a DAG through
their incorporated protocols. Lookups walk these explicitly:

    ClassDef.instance_method(sel)        own table, then superclass, ...
    ClassDef.instance_method(sel, True)  same, but also each class's protocols
    ProtocolDef.instance_method(sel)     own required/optional, then incorporated

Categories
----------
A category is recorded as its own ClassDef (key "Name+Category") so that
a second definition of the same category can be detected. Its methods
are also merged into the base class so lookups through the class see
them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from objj_sdk.objj.ast import (
    ASTNode,
    AccessorSpec,
    ClassStatement,
    Identifier,
)
from objj_sdk.objj.errors import DuplicateDefinitionError

logger = logging.getLogger(__name__)


class MethodType(Enum):
    """Instance ("-") or class ("+") method."""
    INSTANCE = "-"
    CLASS = "+"

    @classmethod
    def from_marker(cls, marker: str) -> "MethodType":
        """Map the '-' / '+' marker of a method declaration."""
        return cls.INSTANCE if marker == "-" else cls.CLASS


# =============================================================================
# Methods, Ivars and Typedefs
# =============================================================================

@dataclass(frozen=True)
class MethodDef:
    """
    One method signature.

    Attributes:
        node: Declaring node, used to point diagnostics at the declaration
        name: The selector, e.g. "setFirstName:lastName:"
        types: Return type followed by one type per parameter
    """
    node: Optional[ASTNode]
    name: str
    types: Tuple[str, ...]

    def __post_init__(self):
        if len(self.types) != self.name.count(":") + 1:
            raise ValueError(
                f"method '{self.name}' needs {self.name.count(':') + 1} types, "
                f"got {len(self.types)}"
            )

    @property
    def return_type(self) -> str:
        return self.types[0]

    @property
    def parameter_types(self) -> Tuple[str, ...]:
        return self.types[1:]


@dataclass
class IvarDef:
    """An instance variable of a class."""
    name: str
    type: str
    node: Optional[ASTNode] = None
    accessors: Optional[AccessorSpec] = None
    is_outlet: bool = False


@dataclass(frozen=True)
class TypeDef:
    """A name declared with @typedef."""
    node: Optional[ASTNode]
    name: str


# =============================================================================
# Class Definitions
# =============================================================================

class ClassDef:
    """
    Compile-time record of one class.

    A ClassDef created by a `@class` statement is a *stub*: it carries a
    name only, and may later be replaced by a full implementation.

    Attributes:
        node: The declaring node (ClassDeclaration, or the @class statement)
        name: The class name
        superclass_def: ClassDef of the superclass, None for a root class
        category: Category name for a category ClassDef
        base_class: For a category, the ClassDef it extends
        ivars: Instance variables in declaration order
        instance_methods: selector -> MethodDef
        class_methods: selector -> MethodDef
        protocols: Protocols the class declares conformance to
    """

    def __init__(
        self,
        node: Optional[ASTNode],
        name: str,
        superclass_def: Optional["ClassDef"] = None,
        category: Optional[str] = None,
        base_class: Optional["ClassDef"] = None,
    ):
        self.node = node
        self.name = name
        self.superclass_def = superclass_def
        self.category = category
        self.base_class = base_class
        self.ivars: Dict[str, IvarDef] = {}
        self.instance_methods: Dict[str, MethodDef] = {}
        self.class_methods: Dict[str, MethodDef] = {}
        self.protocols: Dict[str, "ProtocolDef"] = {}

    def __repr__(self) -> str:
        if self.category:
            return f"ClassDef({self.name} ({self.category}))"
        return f"ClassDef({self.name})"

    @property
    def is_stub(self) -> bool:
        """True if this class is only known from a @class statement."""
        return isinstance(self.node, (ClassStatement, Identifier))

    @property
    def key(self) -> str:
        """Registry key: the name, or "Name+Category" for categories."""
        if self.category:
            return f"{self.name}+{self.category}"
        return self.name

    # -------------------------------------------------------------------------
    # Ivars
    # -------------------------------------------------------------------------

    def add_ivar(self, ivar: IvarDef) -> None:
        self.ivars[ivar.name] = ivar

    def get_ivar(self, name: str) -> Optional[IvarDef]:
        return self.ivars.get(name)

    def find_ivar(self, name: str) -> Optional[Tuple[IvarDef, "ClassDef"]]:
        """
        Find an ivar in this class or one of its superclasses.

        Returns:
            (ivar, declaring class) or None
        """
        class_def: Optional[ClassDef] = self
        while class_def is not None:
            ivar = class_def.get_ivar(name)
            if ivar is not None:
                return ivar, class_def
            class_def = class_def.superclass_def
        return None

    # -------------------------------------------------------------------------
    # Methods
    # -------------------------------------------------------------------------

    def add_instance_method(self, method: MethodDef) -> None:
        self.instance_methods[method.name] = method
        if self.base_class is not None:
            self.base_class.instance_methods.setdefault(method.name, method)

    def add_class_method(self, method: MethodDef) -> None:
        self.class_methods[method.name] = method
        if self.base_class is not None:
            self.base_class.class_methods.setdefault(method.name, method)

    def add_method(self, method: MethodDef, method_type: MethodType) -> None:
        if method_type is MethodType.INSTANCE:
            self.add_instance_method(method)
        else:
            self.add_class_method(method)

    def add_protocol(self, protocol: "ProtocolDef") -> None:
        self.protocols[protocol.name] = protocol

    def get_own_instance_method(self, selector: str) -> Optional[MethodDef]:
        return self.instance_methods.get(selector)

    def get_own_class_method(self, selector: str) -> Optional[MethodDef]:
        return self.class_methods.get(selector)

    def get_own_method(self, selector: str, method_type: MethodType) -> Optional[MethodDef]:
        if method_type is MethodType.INSTANCE:
            return self.get_own_instance_method(selector)
        return self.get_own_class_method(selector)

    def _superclass_chain(self) -> Iterator["ClassDef"]:
        class_def: Optional[ClassDef] = self.base_class or self
        if self.base_class is not None:
            yield self
        while class_def is not None:
            yield class_def
            class_def = class_def.superclass_def

    def method(
        self,
        selector: str,
        method_type: MethodType,
        search_protocols: bool = False,
    ) -> Optional[MethodDef]:
        """
        Look up a method, walking up the superclass chain.

        Args:
            selector: The selector to find
            method_type: Instance or class method table
            search_protocols: Also consult each class's conformed protocols

        Returns:
            The first MethodDef found, or None at the root of the chain
        """
        for class_def in self._superclass_chain():
            found = class_def.get_own_method(selector, method_type)
            if found is not None:
                return found
            if search_protocols:
                for protocol in class_def.protocols.values():
                    found = protocol.method(selector, method_type)
                    if found is not None:
                        return found
        return None

    def instance_method(self, selector: str, search_protocols: bool = False) -> Optional[MethodDef]:
        return self.method(selector, MethodType.INSTANCE, search_protocols)

    def class_method(self, selector: str, search_protocols: bool = False) -> Optional[MethodDef]:
        return self.method(selector, MethodType.CLASS, search_protocols)

    def methods(self, method_type: MethodType) -> Dict[str, MethodDef]:
        """All methods of this class merged with those it inherits."""
        merged: Dict[str, MethodDef] = {}
        for class_def in reversed(list(self._superclass_chain())):
            table = class_def.instance_methods if method_type is MethodType.INSTANCE \
                else class_def.class_methods
            merged.update(table)
        return merged

    def unimplemented_required_methods(
        self,
        protocols: Optional[List["ProtocolDef"]] = None,
    ) -> List[Tuple[MethodDef, "ProtocolDef"]]:
        """
        List required protocol methods this class does not implement.

        Each protocol is checked together with the protocols it
        incorporates. A method is implemented if it appears in the merged
        (own plus inherited) method table of the right kind.

        Args:
            protocols: Protocols to check; defaults to the conformed ones

        Returns:
            (method, declaring protocol) pairs, in declaration order
        """
        if protocols is None:
            protocols = list(self.protocols.values())

        implemented = {
            method_type: self.methods(method_type)
            for method_type in MethodType
        }
        missing: List[Tuple[MethodDef, ProtocolDef]] = []
        seen = set()

        for protocol in protocols:
            for method, method_type, owner in protocol.required_methods():
                if (owner.name, method.name, method_type) in seen:
                    continue
                seen.add((owner.name, method.name, method_type))
                if method.name not in implemented[method_type]:
                    missing.append((method, owner))

        return missing


# =============================================================================
# Protocol Definitions
# =============================================================================

class ProtocolDef:
    """
    Compile-time record of one protocol.

    Attributes:
        node: The ProtocolDeclaration node
        name: Protocol name
        incorporated_protocols: Protocols listed in <...> after the name
    """

    def __init__(
        self,
        node: Optional[ASTNode],
        name: str,
        incorporated_protocols: Optional[List["ProtocolDef"]] = None,
    ):
        self.node = node
        self.name = name
        self.incorporated_protocols = list(incorporated_protocols or [])
        self.required_instance_methods: Dict[str, MethodDef] = {}
        self.required_class_methods: Dict[str, MethodDef] = {}
        self.optional_instance_methods: Dict[str, MethodDef] = {}
        self.optional_class_methods: Dict[str, MethodDef] = {}

    def __repr__(self) -> str:
        return f"ProtocolDef({self.name})"

    def _table(self, method_type: MethodType, required: bool) -> Dict[str, MethodDef]:
        if method_type is MethodType.INSTANCE:
            return self.required_instance_methods if required else self.optional_instance_methods
        return self.required_class_methods if required else self.optional_class_methods

    def add_method(self, method: MethodDef, method_type: MethodType, required: bool = True) -> None:
        self._table(method_type, required)[method.name] = method

    def add_instance_method(self, method: MethodDef, required: bool = True) -> None:
        self.add_method(method, MethodType.INSTANCE, required)

    def add_class_method(self, method: MethodDef, required: bool = True) -> None:
        self.add_method(method, MethodType.CLASS, required)

    def get_own_method(self, selector: str, method_type: MethodType) -> Optional[MethodDef]:
        return (self._table(method_type, True).get(selector)
                or self._table(method_type, False).get(selector))

    def get_own_instance_method(self, selector: str) -> Optional[MethodDef]:
        return self.get_own_method(selector, MethodType.INSTANCE)

    def get_own_class_method(self, selector: str) -> Optional[MethodDef]:
        return self.get_own_method(selector, MethodType.CLASS)

    def _protocol_dag(self) -> Iterator["ProtocolDef"]:
        """This protocol then every incorporated protocol, each once."""
        seen = set()
        pending = [self]
        while pending:
            protocol = pending.pop(0)
            if protocol.name in seen:
                continue
            seen.add(protocol.name)
            yield protocol
            pending.extend(protocol.incorporated_protocols)

    def method(self, selector: str, method_type: MethodType) -> Optional[MethodDef]:
        """Find a method here or in an incorporated protocol."""
        for protocol in self._protocol_dag():
            found = protocol.get_own_method(selector, method_type)
            if found is not None:
                return found
        return None

    def instance_method(self, selector: str) -> Optional[MethodDef]:
        return self.method(selector, MethodType.INSTANCE)

    def class_method(self, selector: str) -> Optional[MethodDef]:
        return self.method(selector, MethodType.CLASS)

    def required_methods(self) -> Iterator[Tuple[MethodDef, MethodType, "ProtocolDef"]]:
        """Yield (method, type, declaring protocol) for every required method."""
        for protocol in self._protocol_dag():
            for method_type in (MethodType.INSTANCE, MethodType.CLASS):
                for method in protocol._table(method_type, True).values():
                    yield method, method_type, protocol


# =============================================================================
# Symbol Tables
# =============================================================================

class MisspelledSymbolMap:
    """Case-insensitive name lookup used for "did you mean" suggestions."""

    def __init__(self, names=()):
        self._map: Dict[str, str] = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> None:
        self._map[name.lower()] = name

    def get(self, name: str) -> Optional[str]:
        return self._map.get(name.lower())


@dataclass
class SymbolTables:
    """
    Registry of classes, protocols and typedefs for a compilation session.

    Pass the same instance to each Compiler of a multi-file build. The
    tables are not synchronized; do not share one instance between
    concurrent compilations.
    """
    classes: Dict[str, ClassDef] = field(default_factory=dict)
    protocols: Dict[str, ProtocolDef] = field(default_factory=dict)
    typedefs: Dict[str, TypeDef] = field(default_factory=dict)
    _misspelled_classes: MisspelledSymbolMap = field(default_factory=MisspelledSymbolMap, repr=False)
    _misspelled_protocols: MisspelledSymbolMap = field(default_factory=MisspelledSymbolMap, repr=False)
    _misspelled_typedefs: MisspelledSymbolMap = field(default_factory=MisspelledSymbolMap, repr=False)

    def __post_init__(self):
        for name in self.classes:
            self._misspelled_classes.add(name)
        for name in self.protocols:
            self._misspelled_protocols.add(name)
        for name in self.typedefs:
            self._misspelled_typedefs.add(name)

    # -------------------------------------------------------------------------
    # Classes
    # -------------------------------------------------------------------------

    def register_class(self, class_def: ClassDef) -> None:
        """
        Register a class, category or @class stub.

        A stub is replaced silently by a later implementation.

        Raises:
            DuplicateDefinitionError: If a full implementation (or the
                same category) is already registered
        """
        key = class_def.key
        existing = self.classes.get(key)
        if existing is not None and not existing.is_stub and not class_def.is_stub:
            kind = "category" if class_def.category else "class"
            name = f"{class_def.name} ({class_def.category})" if class_def.category else key
            raise DuplicateDefinitionError(
                kind,
                name,
                location=class_def.node.location if class_def.node else None,
                previous_location=existing.node.location if existing.node else None,
            )
        if existing is not None and class_def.is_stub:
            # a @class after the implementation does not replace it
            return

        self.classes[key] = class_def
        self._misspelled_classes.add(class_def.name)
        logger.debug(f"Registered {class_def!r}")

    def lookup_class(self, name: str) -> Optional[ClassDef]:
        return self.classes.get(name)

    # -------------------------------------------------------------------------
    # Protocols
    # -------------------------------------------------------------------------

    def register_protocol(self, protocol_def: ProtocolDef) -> None:
        """
        Register a protocol.

        Raises:
            DuplicateDefinitionError: If the name is already registered
        """
        existing = self.protocols.get(protocol_def.name)
        if existing is not None:
            raise DuplicateDefinitionError(
                "protocol",
                protocol_def.name,
                location=protocol_def.node.location if protocol_def.node else None,
                previous_location=existing.node.location if existing.node else None,
            )
        self.protocols[protocol_def.name] = protocol_def
        self._misspelled_protocols.add(protocol_def.name)
        logger.debug(f"Registered {protocol_def!r}")

    def lookup_protocol(self, name: str) -> Optional[ProtocolDef]:
        return self.protocols.get(name)

    # -------------------------------------------------------------------------
    # Typedefs
    # -------------------------------------------------------------------------

    def register_typedef(self, typedef: TypeDef) -> None:
        self.typedefs[typedef.name] = typedef
        self._misspelled_typedefs.add(typedef.name)

    def lookup_typedef(self, name: str) -> Optional[TypeDef]:
        return self.typedefs.get(name)

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    def misspelled_protocol(self, name: str) -> Optional[str]:
        return self._misspelled_protocols.get(name)

    def find_misspelled_name(self, name: str, extra: Optional[MisspelledSymbolMap] = None) -> Optional[str]:
        """Suggest a known class, protocol or typedef differing only in case."""
        for table in (self._misspelled_classes, self._misspelled_protocols,
                      self._misspelled_typedefs, extra):
            if table is None:
                continue
            found = table.get(name)
            if found is not None and found != name:
                return found
        return None
