"""Conversion between in-memory types, values and operations and their models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hugr_core._ops import (
    CFG,
    DFG,
    Call,
    CallIndirect,
    Case,
    Conditional,
    Const,
    DataflowBlock,
    ExitBlock,
    ExtensionOp,
    ExtensionValue,
    FuncDecl,
    FuncDefn,
    Input,
    Lift,
    LoadConstant,
    LoadFunction,
    MakeTuple,
    Module,
    Noop,
    Op,
    Output,
    SumValue,
    Tag,
    TailLoop,
    TupleValue,
    UnpackTuple,
    Value,
)
from hugr_core._types import (
    BoundedNatArg,
    BoundedNatParam,
    ExtensionsArg,
    ExtensionSet,
    ExtensionsParam,
    FunctionType,
    ListParam,
    Opaque,
    PolyFuncType,
    SequenceArg,
    StringArg,
    StringParam,
    SumType,
    TupleType,
    Type,
    TypeArg,
    TypeParam,
    TypeRow,
    TypeTypeArg,
    TypeTypeParam,
    Variable,
    VariableArg,
)

from ._models import (
    BoundedNatArgModel,
    BoundedNatParamModel,
    CallIndirectModel,
    CallModel,
    CaseModel,
    CFGModel,
    ConditionalModel,
    ConstModel,
    DataflowBlockModel,
    DFGModel,
    ExitBlockModel,
    ExtensionOpModel,
    ExtensionsArgModel,
    ExtensionsParamModel,
    ExtensionValueModel,
    FuncDeclModel,
    FuncDefnModel,
    FunctionModel,
    InputModel,
    LiftModel,
    ListParamModel,
    LoadConstantModel,
    LoadFunctionModel,
    MakeTupleModel,
    ModuleModel,
    NoopModel,
    OpaqueModel,
    OutputModel,
    PolyFuncTypeModel,
    SequenceArgModel,
    SerialOp,
    SerialType,
    SerialTypeArg,
    SerialTypeParam,
    SerialValue,
    StringArgModel,
    StringParamModel,
    SumModel,
    SumValueModel,
    TagModel,
    TailLoopModel,
    TupleModel,
    TupleValueModel,
    TypeTypeArgModel,
    TypeTypeParamModel,
    UnpackTupleModel,
    VariableArgModel,
    VariableModel,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hugr_core._extension import ExtensionRegistry


def _unsupported(what: str, obj: object) -> TypeError:
    return TypeError(f"Cannot serialize {what} {obj!r}")


# =============================================================================
# Type parameters and arguments
# =============================================================================


def param_to_serial(param: TypeParam) -> SerialTypeParam:
    match param:
        case TypeTypeParam():
            return TypeTypeParamModel(b=param.bound)
        case BoundedNatParam():
            return BoundedNatParamModel(bound=param.upper_bound)
        case StringParam():
            return StringParamModel()
        case ExtensionsParam():
            return ExtensionsParamModel()
        case ListParam():
            return ListParamModel(param=param_to_serial(param.param))
        case _:
            raise _unsupported("type parameter", param)


def param_from_serial(model: SerialTypeParam) -> TypeParam:
    match model:
        case TypeTypeParamModel():
            return TypeTypeParam(model.b)
        case BoundedNatParamModel():
            return BoundedNatParam(model.bound)
        case StringParamModel():
            return StringParam()
        case ExtensionsParamModel():
            return ExtensionsParam()
        case ListParamModel():
            return ListParam(param_from_serial(model.param))


def arg_to_serial(arg: TypeArg) -> SerialTypeArg:
    match arg:
        case TypeTypeArg():
            return TypeTypeArgModel(ty=type_to_serial(arg.ty))
        case BoundedNatArg():
            return BoundedNatArgModel(n=arg.n)
        case StringArg():
            return StringArgModel(arg=arg.value)
        case ExtensionsArg():
            return ExtensionsArgModel(es=arg.extensions.to_strings())
        case SequenceArg():
            return SequenceArgModel(elems=[arg_to_serial(e) for e in arg.elems])
        case VariableArg():
            return VariableArgModel(idx=arg.idx, cached_decl=param_to_serial(arg.param))
        case _:
            raise _unsupported("type argument", arg)


def arg_from_serial(model: SerialTypeArg, registry: ExtensionRegistry) -> TypeArg:
    match model:
        case TypeTypeArgModel():
            return TypeTypeArg(type_from_serial(model.ty, registry))
        case BoundedNatArgModel():
            return BoundedNatArg(model.n)
        case StringArgModel():
            return StringArg(model.arg)
        case ExtensionsArgModel():
            return ExtensionsArg(ExtensionSet.from_strings(model.es))
        case SequenceArgModel():
            return SequenceArg(tuple(arg_from_serial(e, registry) for e in model.elems))
        case VariableArgModel():
            return VariableArg(model.idx, param_from_serial(model.cached_decl))


# =============================================================================
# Types
# =============================================================================


def row_to_serial(row: Iterable[Type]) -> list[SerialType]:
    return [type_to_serial(ty) for ty in row]


def row_from_serial(models: Iterable[SerialType], registry: ExtensionRegistry) -> TypeRow:
    return TypeRow(tuple(type_from_serial(m, registry) for m in models))


def function_to_serial(ty: FunctionType) -> FunctionModel:
    return FunctionModel(
        input=row_to_serial(ty.input),
        output=row_to_serial(ty.output),
        extension_reqs=ty.extension_reqs.to_strings(),
    )


def function_from_serial(model: FunctionModel, registry: ExtensionRegistry) -> FunctionType:
    return FunctionType(
        row_from_serial(model.input, registry),
        row_from_serial(model.output, registry),
        ExtensionSet.from_strings(model.extension_reqs),
    )


def poly_func_to_serial(ty: PolyFuncType) -> PolyFuncTypeModel:
    return PolyFuncTypeModel(params=[param_to_serial(p) for p in ty.params], body=function_to_serial(ty.body))


def poly_func_from_serial(model: PolyFuncTypeModel, registry: ExtensionRegistry) -> PolyFuncType:
    params = tuple(param_from_serial(p) for p in model.params)
    return PolyFuncType(params, function_from_serial(model.body, registry))


def type_to_serial(ty: Type) -> SerialType:
    match ty:
        case Opaque():
            return OpaqueModel(
                extension=ty.extension,
                id=ty.name,
                args=[arg_to_serial(a) for a in ty.args],
                bound=ty.cached_bound,
            )
        case SumType():
            return SumModel(variants=[row_to_serial(v) for v in ty.variants])
        case TupleType():
            return TupleModel(row=row_to_serial(ty.row))
        case FunctionType():
            return function_to_serial(ty)
        case Variable():
            return VariableModel(i=ty.idx, b=ty.cached_bound)
        case _:
            raise _unsupported("type", ty)


def type_from_serial(model: SerialType, registry: ExtensionRegistry) -> Type:
    """Decode a type, resolving opaque types against their registered definitions.

    The bound of an opaque type is taken from its definition, not from `model`.

    Raises:
        ExtensionNotFound: If an opaque type names an unregistered extension.
        SignatureError: If the definition is missing or the arguments do not fit it.

    """
    match model:
        case OpaqueModel():
            args = [arg_from_serial(a, registry) for a in model.args]
            return registry.get_type(model.extension, model.id).instantiate(args)
        case SumModel():
            return SumType(tuple(row_from_serial(v, registry) for v in model.variants))
        case TupleModel():
            return TupleType(row_from_serial(model.row, registry))
        case FunctionModel():
            return function_from_serial(model, registry)
        case VariableModel():
            return Variable(model.i, model.b)


# =============================================================================
# Values
# =============================================================================


def value_to_serial(value: Value) -> SerialValue:
    match value:
        case SumValue():
            return SumValueModel(tag=value.tag, vs=[value_to_serial(v) for v in value.values])
        case TupleValue():
            return TupleValueModel(vs=[value_to_serial(v) for v in value.values])
        case ExtensionValue():
            return ExtensionValueModel(typ=type_to_serial(value.typ), value=value.value)
        case _:
            raise _unsupported("value", value)


def value_from_serial(model: SerialValue, registry: ExtensionRegistry) -> Value:
    match model:
        case SumValueModel():
            return SumValue(model.tag, tuple(value_from_serial(v, registry) for v in model.vs))
        case TupleValueModel():
            return TupleValue(tuple(value_from_serial(v, registry) for v in model.vs))
        case ExtensionValueModel():
            return ExtensionValue(type_from_serial(model.typ, registry), model.value)


# =============================================================================
# Operations
# =============================================================================


def _delta_to_serial(delta: ExtensionSet | None) -> list[str] | None:
    return None if delta is None else delta.to_strings()


def _delta_from_serial(delta: list[str] | None) -> ExtensionSet | None:
    return None if delta is None else ExtensionSet.from_strings(delta)


def op_to_serial(op: Op) -> SerialOp:  # noqa: C901, PLR0911
    """Encode an operation. Extension operations keep only their name and arguments."""
    match op:
        case Module():
            return ModuleModel()
        case FuncDefn():
            return FuncDefnModel(name=op.name, signature=poly_func_to_serial(op.signature))
        case FuncDecl():
            return FuncDeclModel(name=op.name, signature=poly_func_to_serial(op.signature))
        case Const():
            return ConstModel(value=value_to_serial(op.value), typ=type_to_serial(op.typ))
        case Input():
            return InputModel(types=row_to_serial(op.types))
        case Output():
            return OutputModel(types=row_to_serial(op.types))
        case DFG():
            return DFGModel(
                inputs=row_to_serial(op.inputs),
                outputs=row_to_serial(op.outputs),
                delta=_delta_to_serial(op.delta),
            )
        case Conditional():
            return ConditionalModel(
                sum_rows=[row_to_serial(r) for r in op.sum_rows],
                other_inputs=row_to_serial(op.other_inputs),
                outputs=row_to_serial(op.outputs),
                delta=_delta_to_serial(op.delta),
            )
        case Case():
            return CaseModel(
                inputs=row_to_serial(op.inputs),
                outputs=row_to_serial(op.outputs),
                delta=_delta_to_serial(op.delta),
            )
        case TailLoop():
            return TailLoopModel(
                just_inputs=row_to_serial(op.just_inputs),
                just_outputs=row_to_serial(op.just_outputs),
                rest=row_to_serial(op.rest),
                delta=_delta_to_serial(op.delta),
            )
        case CFG():
            return CFGModel(
                inputs=row_to_serial(op.inputs),
                outputs=row_to_serial(op.outputs),
                delta=_delta_to_serial(op.delta),
            )
        case DataflowBlock():
            return DataflowBlockModel(
                inputs=row_to_serial(op.inputs),
                sum_rows=[row_to_serial(r) for r in op.sum_rows],
                other_outputs=row_to_serial(op.other_outputs),
                delta=_delta_to_serial(op.delta),
            )
        case ExitBlock():
            return ExitBlockModel(cfg_outputs=row_to_serial(op.cfg_outputs))
        case Call():
            return CallModel(
                func_sig=poly_func_to_serial(op.func_sig),
                type_args=[arg_to_serial(a) for a in op.type_args],
                instantiation=function_to_serial(op.instantiation),
            )
        case CallIndirect():
            return CallIndirectModel(signature=function_to_serial(op.signature))
        case LoadConstant():
            return LoadConstantModel(datatype=type_to_serial(op.datatype))
        case LoadFunction():
            return LoadFunctionModel(
                func_sig=poly_func_to_serial(op.func_sig),
                type_args=[arg_to_serial(a) for a in op.type_args],
                signature=function_to_serial(op.signature),
            )
        case Tag():
            return TagModel(tag=op.tag, variants=[row_to_serial(r) for r in op.variants])
        case Lift():
            return LiftModel(type_row=row_to_serial(op.type_row), new_extension=op.new_extension)
        case MakeTuple():
            return MakeTupleModel(tys=row_to_serial(op.tys))
        case UnpackTuple():
            return UnpackTupleModel(tys=row_to_serial(op.tys))
        case Noop():
            return NoopModel(ty=type_to_serial(op.ty))
        case ExtensionOp():
            return ExtensionOpModel(
                extension=op.extension,
                name=op.op_name,
                args=[arg_to_serial(a) for a in op.args],
            )
        case _:
            raise _unsupported("operation", op)


def op_from_serial(model: SerialOp, registry: ExtensionRegistry) -> Op:  # noqa: C901, PLR0911
    """Decode an operation, resolving extension operations and opaque types against `registry`.

    Raises:
        ExtensionNotFound: If an extension operation or opaque type names an unknown extension.
        OperationNotFound: If the extension lacks the named operation.
        SignatureError: If static arguments are malformed.

    """
    match model:
        case ModuleModel():
            return Module()
        case FuncDefnModel():
            return FuncDefn(model.name, poly_func_from_serial(model.signature, registry))
        case FuncDeclModel():
            return FuncDecl(model.name, poly_func_from_serial(model.signature, registry))
        case ConstModel():
            return Const(value_from_serial(model.value, registry), type_from_serial(model.typ, registry))
        case InputModel():
            return Input(row_from_serial(model.types, registry))
        case OutputModel():
            return Output(row_from_serial(model.types, registry))
        case DFGModel():
            return DFG(
                row_from_serial(model.inputs, registry),
                row_from_serial(model.outputs, registry),
                _delta_from_serial(model.delta),
            )
        case ConditionalModel():
            return Conditional(
                tuple(row_from_serial(r, registry) for r in model.sum_rows),
                row_from_serial(model.other_inputs, registry),
                row_from_serial(model.outputs, registry),
                _delta_from_serial(model.delta),
            )
        case CaseModel():
            return Case(
                row_from_serial(model.inputs, registry),
                row_from_serial(model.outputs, registry),
                _delta_from_serial(model.delta),
            )
        case TailLoopModel():
            return TailLoop(
                row_from_serial(model.just_inputs, registry),
                row_from_serial(model.just_outputs, registry),
                row_from_serial(model.rest, registry),
                _delta_from_serial(model.delta),
            )
        case CFGModel():
            return CFG(
                row_from_serial(model.inputs, registry),
                row_from_serial(model.outputs, registry),
                _delta_from_serial(model.delta),
            )
        case DataflowBlockModel():
            return DataflowBlock(
                row_from_serial(model.inputs, registry),
                tuple(row_from_serial(r, registry) for r in model.sum_rows),
                row_from_serial(model.other_outputs, registry),
                _delta_from_serial(model.delta),
            )
        case ExitBlockModel():
            return ExitBlock(row_from_serial(model.cfg_outputs, registry))
        case CallModel():
            return Call(
                poly_func_from_serial(model.func_sig, registry),
                tuple(arg_from_serial(a, registry) for a in model.type_args),
                function_from_serial(model.instantiation, registry),
            )
        case CallIndirectModel():
            return CallIndirect(function_from_serial(model.signature, registry))
        case LoadConstantModel():
            return LoadConstant(type_from_serial(model.datatype, registry))
        case LoadFunctionModel():
            return LoadFunction(
                poly_func_from_serial(model.func_sig, registry),
                tuple(arg_from_serial(a, registry) for a in model.type_args),
                function_from_serial(model.signature, registry),
            )
        case TagModel():
            return Tag(model.tag, tuple(row_from_serial(r, registry) for r in model.variants))
        case LiftModel():
            return Lift(row_from_serial(model.type_row, registry), model.new_extension)
        case MakeTupleModel():
            return MakeTuple(row_from_serial(model.tys, registry))
        case UnpackTupleModel():
            return UnpackTuple(row_from_serial(model.tys, registry))
        case NoopModel():
            return Noop(type_from_serial(model.ty, registry))
        case ExtensionOpModel():
            args = [arg_from_serial(a, registry) for a in model.args]
            return registry.instantiate_op(model.extension, model.name, args)
