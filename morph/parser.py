"""Morph Parser — recursive-descent parser with one token of lookahead.

Parses a token stream into a Module. Fails fast: the first unexpected
token raises a ParseError carrying its location and the expected-vs-found
description.

Top-level declarations:
  proto name(params) => T { ... }
  solid name(params) => T { ... }
  type Name = { field: T, ... }  |  type Name = A | B | C  |  type Name = T
  solve name(params) { let x = e  ensure cond  return e }
  import path.to.module

Expression precedence, lowest to highest:
  |>   ==  !=   <  <=  >  >=   +  -   *  /  %   unary ! -   call/field/index
"""

from __future__ import annotations

from typing import Optional

from morph.lexer import Token, TokenType, tokenize
from morph.ast_nodes import (
    Module, Declaration, FunctionDecl, FunctionMode, Parameter,
    TypeDecl, AliasDefinition, RecordDefinition, EnumDefinition,
    SolveBlock, BindingConstraint, EnsureConstraint, ImportDecl,
    TypeAnnotation, NamedType, GenericTypeAnnotation, FunctionTypeAnnotation,
    GhostAnnotation, GhostValue,
    Statement, VarDecl, ExprStmt, ReturnStmt, ForStmt, AssignStmt,
    Expr, IntLiteral, FloatLiteral, StringLiteral, BoolLiteral,
    ListLiteral, RecordLiteral, Identifier, BinaryOp, UnaryOp,
    CallExpr, PipeExpr, MatchExpr, MatchArm, BlockExpr, IfExpr,
    FieldAccess, IndexAccess, LambdaExpr, ClaimExpr,
    Pattern, WildcardPattern, LiteralPattern, IdentPattern, RangePattern, TuplePattern,
)
from morph.errors import SourceLocation, ParseError, syntax_error

_TRIVIA = (TokenType.NEWLINE, TokenType.COMMENT)
_SEPARATORS = (TokenType.NEWLINE, TokenType.COMMENT, TokenType.SEMICOLON)


class Parser:
    """Recursive-descent parser for Morph."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>"):
        if not tokens or tokens[-1].type != TokenType.EOF:
            end = tokens[-1].location if tokens else SourceLocation(1, 1, filename)
            tokens = list(tokens) + [Token(TokenType.EOF, "", end)]
        self.tokens = tokens
        self.pos = 0
        self.filename = filename

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self) -> TokenType:
        return self._current().type

    def _peek_at(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _peek_significant(self, n: int = 0) -> TokenType:
        """Type of the n-th token from here, not counting newlines and comments."""
        idx = self.pos
        seen = 0
        while idx < len(self.tokens):
            tok = self.tokens[idx]
            if tok.type not in _TRIVIA:
                if seen == n:
                    return tok.type
                seen += 1
            idx += 1
        return TokenType.EOF

    def _loc(self) -> SourceLocation:
        return self._current().location

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _error(self, message: str, tok: Optional[Token] = None, expected: Optional[str] = None) -> ParseError:
        tok = tok or self._current()
        return ParseError(syntax_error(
            message, tok.location, expected=expected, found=tok.type.name,
        ))

    def _expect(self, tt: TokenType) -> Token:
        tok = self._current()
        if tok.type != tt:
            raise self._error(
                f"Expected {tt.name}, got {tok.type.name} ('{tok.value}')",
                tok,
                expected=tt.name,
            )
        return self._advance()

    def _match(self, tt: TokenType) -> Optional[Token]:
        if self._peek() == tt:
            return self._advance()
        return None

    def _skip_newlines(self) -> None:
        while self._peek() in _TRIVIA:
            self._advance()

    def _skip_separators(self) -> None:
        while self._peek() in _SEPARATORS:
            self._advance()

    # -------------------------------------------------------------------
    # Top-level
    # -------------------------------------------------------------------

    def parse(self) -> Module:
        decls: list[Declaration] = []
        self._skip_separators()
        while self._peek() != TokenType.EOF:
            decls.append(self._parse_declaration())
            self._skip_separators()
        return Module(declarations=decls, filename=self.filename)

    def _parse_declaration(self) -> Declaration:
        tt = self._peek()
        if tt in (TokenType.PROTO, TokenType.SOLID):
            return self._parse_function()
        elif tt == TokenType.TYPE:
            return self._parse_type_decl()
        elif tt == TokenType.SOLVE:
            return self._parse_solve_block()
        elif tt == TokenType.IMPORT:
            return self._parse_import()
        else:
            raise self._error(
                f"Expected declaration (proto, solid, type, solve, import), "
                f"got '{self._current().value}'",
                expected="declaration",
            )

    # -------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------

    def _parse_function(self) -> FunctionDecl:
        loc = self._loc()
        mode_tok = self._advance()
        mode = FunctionMode.SOLID if mode_tok.type == TokenType.SOLID else FunctionMode.PROTO
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.LPAREN)
        params = self._parse_param_list(TokenType.RPAREN)
        self._expect(TokenType.RPAREN)
        return_type: Optional[TypeAnnotation] = None
        if self._match(TokenType.FAT_ARROW):
            return_type = self._parse_type_annotation()
        body = self._parse_block()
        return FunctionDecl(
            mode=mode, name=name, params=params,
            return_type=return_type, body=body, location=loc,
        )

    def _parse_param_list(self, closing: TokenType) -> list[Parameter]:
        params: list[Parameter] = []
        self._skip_newlines()
        if self._peek() == closing:
            return params
        params.append(self._parse_param())
        self._skip_newlines()
        while self._match(TokenType.COMMA):
            self._skip_newlines()
            params.append(self._parse_param())
            self._skip_newlines()
        return params

    def _parse_param(self) -> Parameter:
        loc = self._loc()
        name = self._expect(TokenType.IDENT).value
        type_ann: Optional[TypeAnnotation] = None
        if self._match(TokenType.COLON):
            type_ann = self._parse_type_annotation()
        return Parameter(name=name, type_annotation=type_ann, location=loc)

    # -------------------------------------------------------------------
    # type / solve / import
    # -------------------------------------------------------------------

    def _parse_type_decl(self) -> TypeDecl:
        loc = self._loc()
        self._expect(TokenType.TYPE)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.ASSIGN)

        if self._peek() == TokenType.LBRACE:
            self._advance()
            fields: list[tuple[str, TypeAnnotation]] = []
            self._skip_newlines()
            while self._peek() != TokenType.RBRACE:
                field_name = self._expect(TokenType.IDENT).value
                self._expect(TokenType.COLON)
                fields.append((field_name, self._parse_type_annotation()))
                self._skip_newlines()
                if not self._match(TokenType.COMMA):
                    break
                self._skip_newlines()
            self._skip_newlines()
            self._expect(TokenType.RBRACE)
            return TypeDecl(name=name, definition=RecordDefinition(fields), location=loc)

        if self._peek() == TokenType.IDENT and self._peek_at(1).type == TokenType.BAR:
            variants = [self._advance().value]
            while self._match(TokenType.BAR):
                variants.append(self._expect(TokenType.IDENT).value)
            return TypeDecl(name=name, definition=EnumDefinition(variants), location=loc)

        target = self._parse_type_annotation()
        return TypeDecl(name=name, definition=AliasDefinition(target), location=loc)

    def _parse_solve_block(self) -> SolveBlock:
        """Parse: solve name(params) { let x = e / ensure e / return e }"""
        loc = self._loc()
        self._expect(TokenType.SOLVE)
        name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.LPAREN)
        params = self._parse_param_list(TokenType.RPAREN)
        self._expect(TokenType.RPAREN)
        self._skip_newlines()
        self._expect(TokenType.LBRACE)

        block = SolveBlock(name=name, params=params, location=loc)
        self._skip_separators()
        while self._peek() not in (TokenType.RBRACE, TokenType.EOF):
            c_loc = self._loc()
            if self._match(TokenType.LET):
                binding = self._expect(TokenType.IDENT).value
                self._expect(TokenType.ASSIGN)
                block.constraints.append(
                    BindingConstraint(name=binding, expr=self._parse_expression(), location=c_loc)
                )
            elif self._match(TokenType.ENSURE):
                block.constraints.append(
                    EnsureConstraint(expr=self._parse_expression(), location=c_loc)
                )
            elif self._match(TokenType.RETURN):
                block.return_expr = self._parse_expression()
            else:
                raise self._error(
                    f"Expected 'let', 'ensure' or 'return' in solve block, "
                    f"got '{self._current().value}'",
                    expected="constraint",
                )
            self._skip_separators()
        self._expect(TokenType.RBRACE)
        return block

    def _parse_import(self) -> ImportDecl:
        loc = self._loc()
        self._expect(TokenType.IMPORT)
        path = [self._expect(TokenType.IDENT).value]
        while self._peek() in (TokenType.DOT, TokenType.DOUBLE_COLON):
            self._advance()
            path.append(self._expect(TokenType.IDENT).value)
        return ImportDecl(path=path, location=loc)

    # -------------------------------------------------------------------
    # Type annotations
    # -------------------------------------------------------------------

    def _parse_type_annotation(self) -> TypeAnnotation:
        loc = self._loc()

        if self._match(TokenType.LPAREN):
            params: list[TypeAnnotation] = []
            if self._peek() != TokenType.RPAREN:
                params.append(self._parse_type_annotation())
                while self._match(TokenType.COMMA):
                    params.append(self._parse_type_annotation())
            self._expect(TokenType.RPAREN)
            self._expect(TokenType.FAT_ARROW)
            ret = self._parse_type_annotation()
            return FunctionTypeAnnotation(params=params, return_type=ret, location=loc)

        name = self._expect(TokenType.IDENT).value
        ann: TypeAnnotation = NamedType(name=name, location=loc)
        while self._peek() == TokenType.LT:
            if self._is_ghost_open():
                attributes = self._parse_ghost_attributes()
                ann = GhostAnnotation(base=ann, attributes=attributes, location=loc)
            elif isinstance(ann, NamedType):
                self._advance()
                args = [self._parse_type_annotation()]
                while self._match(TokenType.COMMA):
                    args.append(self._parse_type_annotation())
                self._expect(TokenType.GT)
                ann = GenericTypeAnnotation(name=name, args=args, location=loc)
            else:
                raise self._error(f"Unexpected '<' after type '{ann}'")
        return ann

    def _is_ghost_open(self) -> bool:
        marker = self._peek_at(1)
        return (
            marker.type == TokenType.IDENT
            and marker.value == "Ghost"
            and self._peek_at(2).type == TokenType.COLON
        )

    def _parse_ghost_attributes(self) -> list[tuple[str, GhostValue]]:
        """Parse: <Ghost: Key: value, Key: value>"""
        self._expect(TokenType.LT)
        self._expect(TokenType.IDENT)  # Ghost
        self._expect(TokenType.COLON)
        attributes: list[tuple[str, GhostValue]] = []
        while True:
            key = self._expect(TokenType.IDENT).value
            self._expect(TokenType.COLON)
            attributes.append((key, self._parse_ghost_value()))
            if not self._match(TokenType.COMMA):
                break
        self._expect(TokenType.GT)
        return attributes

    def _parse_ghost_value(self) -> GhostValue:
        tt = self._peek()
        if tt == TokenType.STRING_LIT:
            return self._advance().value
        if tt == TokenType.BOOL_LIT:
            return self._advance().value == "true"
        if tt in (TokenType.MINUS, TokenType.INT_LIT, TokenType.FLOAT_LIT):
            return self._parse_signed_number()
        if self._match(TokenType.LBRACKET):
            items: list[GhostValue] = []
            if self._peek() != TokenType.RBRACKET:
                items.append(self._parse_ghost_value())
                while self._match(TokenType.COMMA):
                    items.append(self._parse_ghost_value())
            self._expect(TokenType.RBRACKET)
            return items
        raise self._error(
            f"Expected Ghost attribute value, got '{self._current().value}'",
            expected="attribute value",
        )

    def _parse_signed_number(self) -> int | float:
        negative = self._match(TokenType.MINUS) is not None
        tok = self._current()
        if tok.type == TokenType.INT_LIT:
            value: int | float = int(self._advance().value)
        elif tok.type == TokenType.FLOAT_LIT:
            value = float(self._advance().value)
        else:
            raise self._error(
                f"Expected number, got {tok.type.name} ('{tok.value}')", tok, expected="number",
            )
        return -value if negative else value

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def _parse_block(self) -> list[Statement]:
        self._skip_newlines()
        self._expect(TokenType.LBRACE)
        stmts = self._parse_statements()
        self._expect(TokenType.RBRACE)
        return stmts

    def _parse_statements(self) -> list[Statement]:
        """Statements up to (not including) the closing brace."""
        stmts: list[Statement] = []
        self._skip_separators()
        while self._peek() not in (TokenType.RBRACE, TokenType.EOF):
            stmts.append(self._parse_statement())
            if self._peek() not in _SEPARATORS + (TokenType.RBRACE,):
                raise self._error(
                    f"Expected newline or ';' after statement, got '{self._current().value}'",
                    expected="statement separator",
                )
            self._skip_separators()
        return stmts

    def _parse_statement(self) -> Statement:
        tt = self._peek()
        if tt in (TokenType.LET, TokenType.VAR):
            return self._parse_var_decl()
        if tt == TokenType.RETURN:
            return self._parse_return()
        if tt == TokenType.FOR:
            return self._parse_for()

        loc = self._loc()
        expr = self._parse_expression()
        if self._peek() == TokenType.ASSIGN:
            if not isinstance(expr, (Identifier, FieldAccess, IndexAccess)):
                raise self._error("Invalid assignment target")
            self._advance()
            value = self._parse_expression()
            return AssignStmt(target=expr, value=value, location=loc)
        return ExprStmt(expr=expr, location=loc)

    def _parse_var_decl(self) -> VarDecl:
        loc = self._loc()
        mutable = self._advance().type == TokenType.VAR
        name = self._expect(TokenType.IDENT).value
        type_ann: Optional[TypeAnnotation] = None
        if self._match(TokenType.COLON):
            type_ann = self._parse_type_annotation()
        self._expect(TokenType.ASSIGN)
        value = self._parse_expression()
        return VarDecl(name=name, mutable=mutable, type_annotation=type_ann, value=value, location=loc)

    def _parse_return(self) -> ReturnStmt:
        loc = self._loc()
        self._expect(TokenType.RETURN)
        if self._peek() in _SEPARATORS + (TokenType.RBRACE, TokenType.EOF):
            return ReturnStmt(value=None, location=loc)
        return ReturnStmt(value=self._parse_expression(), location=loc)

    def _parse_for(self) -> ForStmt:
        """Parse: for x in expr [where guard] { body }"""
        loc = self._loc()
        self._expect(TokenType.FOR)
        var_name = self._expect(TokenType.IDENT).value
        self._expect(TokenType.IN)
        iterable = self._parse_expression()
        guard: Optional[Expr] = None
        if self._match(TokenType.WHERE):
            guard = self._parse_expression()
        body = self._parse_block()
        return ForStmt(var_name=var_name, iterable=iterable, guard=guard, body=body, location=loc)

    # -------------------------------------------------------------------
    # Expressions (precedence climbing)
    # -------------------------------------------------------------------

    def _parse_expression(self) -> Expr:
        return self._parse_pipe()

    def _parse_pipe(self) -> Expr:
        left = self._parse_equality()
        while self._peek() == TokenType.PIPE:
            loc = self._loc()
            self._advance()
            self._skip_newlines()
            right = self._parse_equality()
            if not isinstance(right, (CallExpr, Identifier)):
                raise ParseError(syntax_error(
                    "Right side of pipe must be callable",
                    right.location or loc,
                    expected="call or identifier",
                    found=type(right).__name__,
                ))
            left = PipeExpr(left=left, right=right, location=loc)
        return left

    def _parse_equality(self) -> Expr:
        left = self._parse_comparison()
        while self._peek() in (TokenType.EQ, TokenType.NEQ):
            loc = self._loc()
            op = self._advance().value
            right = self._parse_comparison()
            left = BinaryOp(op=op, left=left, right=right, location=loc)
        return left

    def _parse_comparison(self) -> Expr:
        left = self._parse_additive()
        while self._peek() in (TokenType.LT, TokenType.GT, TokenType.LTE, TokenType.GTE):
            loc = self._loc()
            op = self._advance().value
            right = self._parse_additive()
            left = BinaryOp(op=op, left=left, right=right, location=loc)
        return left

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._peek() in (TokenType.PLUS, TokenType.MINUS):
            loc = self._loc()
            op = self._advance().value
            right = self._parse_multiplicative()
            left = BinaryOp(op=op, left=left, right=right, location=loc)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._peek() in (TokenType.STAR, TokenType.SLASH, TokenType.PERCENT):
            loc = self._loc()
            op = self._advance().value
            right = self._parse_unary()
            left = BinaryOp(op=op, left=left, right=right, location=loc)
        return left

    def _parse_unary(self) -> Expr:
        if self._peek() in (TokenType.MINUS, TokenType.NOT):
            loc = self._loc()
            op = self._advance().value
            operand = self._parse_unary()
            return UnaryOp(op=op, operand=operand, location=loc)
        return self._parse_postfix()

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while True:
            if self._peek() == TokenType.LPAREN:
                loc = self._loc()
                self._advance()
                args = self._parse_expression_list(TokenType.RPAREN)
                self._expect(TokenType.RPAREN)
                expr = CallExpr(callee=expr, args=args, location=loc)
            elif self._peek() == TokenType.DOT:
                loc = self._loc()
                self._advance()
                field_name = self._expect(TokenType.IDENT).value
                expr = FieldAccess(obj=expr, field_name=field_name, location=loc)
            elif self._peek() == TokenType.LBRACKET:
                loc = self._loc()
                self._advance()
                self._skip_newlines()
                index = self._parse_expression()
                self._skip_newlines()
                self._expect(TokenType.RBRACKET)
                expr = IndexAccess(obj=expr, index=index, location=loc)
            else:
                break
        return expr

    def _parse_expression_list(self, closing: TokenType) -> list[Expr]:
        """Comma-separated expressions; a trailing comma is allowed."""
        items: list[Expr] = []
        self._skip_newlines()
        while self._peek() != closing:
            items.append(self._parse_expression())
            self._skip_newlines()
            if not self._match(TokenType.COMMA):
                break
            self._skip_newlines()
        return items

    def _parse_primary(self) -> Expr:
        tt = self._peek()
        loc = self._loc()

        if tt == TokenType.INT_LIT:
            tok = self._advance()
            return IntLiteral(value=int(tok.value), location=loc)

        if tt == TokenType.FLOAT_LIT:
            tok = self._advance()
            return FloatLiteral(value=float(tok.value), location=loc)

        if tt == TokenType.STRING_LIT:
            tok = self._advance()
            return StringLiteral(value=tok.value, location=loc)

        if tt == TokenType.BOOL_LIT:
            tok = self._advance()
            return BoolLiteral(value=tok.value == "true", location=loc)

        if tt == TokenType.IDENT:
            tok = self._advance()
            return Identifier(name=tok.value, location=loc)

        if tt == TokenType.LPAREN:
            self._advance()
            self._skip_newlines()
            expr = self._parse_expression()
            self._skip_newlines()
            self._expect(TokenType.RPAREN)
            return expr

        if tt == TokenType.LBRACKET:
            self._advance()
            elements = self._parse_expression_list(TokenType.RBRACKET)
            self._expect(TokenType.RBRACKET)
            return ListLiteral(elements=elements, location=loc)

        if tt == TokenType.LBRACE:
            return self._parse_brace_expr()

        if tt == TokenType.IF:
            return self._parse_if_expr()

        if tt == TokenType.MATCH:
            return self._parse_match_expr()

        if tt == TokenType.CLAIM:
            self._advance()
            return ClaimExpr(expr=self._parse_expression(), location=loc)

        if tt == TokenType.BAR:
            return self._parse_lambda_expr()

        raise self._error(
            f"Expected expression, got '{self._current().value}' ({tt.name})",
            expected="expression",
        )

    # -------------------------------------------------------------------
    # { ... }: empty record, record literal or block
    # -------------------------------------------------------------------

    def _parse_brace_expr(self) -> Expr:
        loc = self._loc()
        self._expect(TokenType.LBRACE)

        if self._peek_significant(0) == TokenType.RBRACE:
            self._skip_newlines()
            self._advance()
            return RecordLiteral(fields=[], location=loc)

        if (self._peek_significant(0) == TokenType.IDENT
                and self._peek_significant(1) == TokenType.COLON):
            return self._parse_record_fields(loc)

        stmts = self._parse_statements()
        self._expect(TokenType.RBRACE)
        return BlockExpr(statements=stmts, location=loc)

    def _parse_record_fields(self, loc: SourceLocation) -> RecordLiteral:
        fields: list[tuple[str, Expr]] = []
        self._skip_newlines()
        while self._peek() != TokenType.RBRACE:
            name = self._expect(TokenType.IDENT).value
            self._expect(TokenType.COLON)
            self._skip_newlines()
            fields.append((name, self._parse_expression()))
            self._skip_newlines()
            if not self._match(TokenType.COMMA):
                break
            self._skip_newlines()
        self._expect(TokenType.RBRACE)
        return RecordLiteral(fields=fields, location=loc)

    # -------------------------------------------------------------------
    # if / match / lambda
    # -------------------------------------------------------------------

    def _parse_block_expr(self) -> BlockExpr:
        self._skip_newlines()
        loc = self._loc()
        return BlockExpr(statements=self._parse_block(), location=loc)

    def _parse_if_expr(self) -> IfExpr:
        """Parse: if cond { ... } [else if ... | else { ... }]"""
        loc = self._loc()
        self._expect(TokenType.IF)
        condition = self._parse_expression()
        then_branch = self._parse_block_expr()
        else_branch: Optional[Expr] = None
        if self._peek_significant(0) == TokenType.ELSE:
            self._skip_newlines()
            self._advance()
            if self._peek() == TokenType.IF:
                else_branch = self._parse_if_expr()
            else:
                else_branch = self._parse_block_expr()
        return IfExpr(condition=condition, then_branch=then_branch, else_branch=else_branch, location=loc)

    def _parse_match_expr(self) -> MatchExpr:
        """Parse: match expr { pattern => expr, ... }"""
        loc = self._loc()
        self._expect(TokenType.MATCH)
        subject = self._parse_expression()
        self._skip_newlines()
        self._expect(TokenType.LBRACE)
        arms: list[MatchArm] = []
        self._skip_newlines()
        while self._peek() not in (TokenType.RBRACE, TokenType.EOF):
            arm_loc = self._loc()
            pattern = self._parse_pattern()
            self._expect(TokenType.FAT_ARROW)
            self._skip_newlines()
            body = self._parse_expression()
            arms.append(MatchArm(pattern=pattern, body=body, location=arm_loc))
            self._skip_newlines()
            self._match(TokenType.COMMA)  # comma between arms optional
            self._skip_newlines()
        self._expect(TokenType.RBRACE)
        return MatchExpr(subject=subject, arms=arms, location=loc)

    def _parse_pattern(self) -> Pattern:
        loc = self._loc()
        tt = self._peek()

        if tt == TokenType.IDENT:
            tok = self._advance()
            if tok.value == "_":
                return WildcardPattern(location=loc)
            return IdentPattern(name=tok.value, location=loc)

        if tt in (TokenType.MINUS, TokenType.INT_LIT, TokenType.FLOAT_LIT):
            value = self._parse_signed_number()
            start = LiteralPattern(value=value, location=loc)
            if isinstance(value, int) and self._peek() == TokenType.DOT_DOT:
                self._advance()
                end_loc = self._loc()
                end_value = self._parse_signed_number()
                if not isinstance(end_value, int):
                    raise self._error("Range pattern bounds must be integers")
                end = LiteralPattern(value=end_value, location=end_loc)
                return RangePattern(start=start, end=end, location=loc)
            return start

        if tt == TokenType.STRING_LIT:
            tok = self._advance()
            return LiteralPattern(value=tok.value, location=loc)

        if tt == TokenType.BOOL_LIT:
            tok = self._advance()
            return LiteralPattern(value=tok.value == "true", location=loc)

        if tt == TokenType.LPAREN:
            self._advance()
            elements: list[Pattern] = []
            if self._peek() != TokenType.RPAREN:
                elements.append(self._parse_pattern())
                while self._match(TokenType.COMMA):
                    elements.append(self._parse_pattern())
            self._expect(TokenType.RPAREN)
            return TuplePattern(elements=elements, location=loc)

        raise self._error(
            f"Expected pattern, got '{self._current().value}'",
            expected="pattern",
        )

    def _parse_lambda_expr(self) -> LambdaExpr:
        """Parse: |params| expr"""
        loc = self._loc()
        self._expect(TokenType.BAR)
        params = self._parse_param_list(TokenType.BAR)
        self._expect(TokenType.BAR)
        body = self._parse_expression()
        return LambdaExpr(params=params, body=body, location=loc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(source: str | list[Token], filename: str = "<stdin>") -> Module:
    """Parse Morph source code (or an existing token stream) into an AST."""
    tokens = tokenize(source, filename) if isinstance(source, str) else source
    return Parser(tokens, filename).parse()
