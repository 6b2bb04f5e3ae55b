"""Lox parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from .ast import (
    OP_DECREMENT,
    OP_INCREMENT,
    OP_NEGATE,
    OP_NOT,
    OP_POSTFIX_DECREMENT,
    OP_POSTFIX_INCREMENT,
    Assign,
    Binary,
    Block,
    Call,
    Expr,
    Expression,
    Function,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Stmt,
    Unary,
    Var,
    Variable,
    While,
)
from .diagnostics import Sink, stderr_sink
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_STRING, Token
from .values import FALSE, NIL, TRUE, VNumber, VString

MAX_ARGS = 255

EQUALITY_OPS: set[str] = {"==", "!="}
COMPARE_OPS: set[str] = {">", ">=", "<", "<="}
TERM_OPS: set[str] = {"+", "-"}
FACTOR_OPS: set[str] = {"*", "/"}


class ParseError(Exception):
    """Parse error at a token. Aborts the whole parse."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        super().__init__(msg + " at line " + str(token.line))


def where(token: Token) -> str:
    if token.type == TK_EOF:
        return " at end"
    return " at '" + token.lexeme + "'"


class Parser:
    """Recursive descent parser for Lox."""

    def __init__(self, tokens: list[Token], sink: Sink | None = None):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.sink: Sink = sink if sink is not None else stderr_sink
        # Reported problems that do not abort the parse.
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if not self.is_at_end():
            self.pos += 1
        return tok

    def at(self, type_: str) -> bool:
        return self.current().type == type_

    def match(self, *types: str) -> bool:
        for type_ in types:
            if self.at(type_):
                self.advance()
                return True
        return False

    def expect(self, type_: str, msg: str) -> Token:
        if self.at(type_):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, token: Token, msg: str) -> ParseError:
        err = ParseError(msg, token)
        self.sink(token.line, where(token), msg)
        return err

    def warn(self, token: Token, msg: str) -> None:
        """Report a problem and keep parsing."""
        self.errors.append(self.error(token, msg))

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        try:
            while not self.is_at_end():
                stmts.append(self.parse_declaration())
        except ParseError as e:
            self.errors.append(e)
            return []
        return stmts

    def parse_declaration(self) -> Stmt:
        if self.match("var"):
            return self.parse_var_decl()
        if self.match("fun"):
            return self.parse_function()
        return self.parse_stmt()

    def parse_var_decl(self) -> Var:
        name_tok = self.expect(TK_IDENT, "Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.parse_expr()
        self.expect(";", "Expect ';' after variable declaration.")
        return Var(Variable(name_tok.lexeme, name_tok), initializer)

    def parse_function(self) -> Function:
        name_tok = self.expect(TK_IDENT, "Expect function name.")
        self.expect("(", "Expect '(' after function name.")
        params: list[Variable] = []
        overflowed = False
        if not self.at(")"):
            while True:
                param_tok = self.expect(TK_IDENT, "Expect parameter name.")
                if len(params) == MAX_ARGS and not overflowed:
                    self.warn(param_tok, "Can't have more than 255 parameters.")
                    overflowed = True
                if not overflowed:
                    params.append(Variable(param_tok.lexeme, param_tok))
                if not self.match(","):
                    break
        self.expect(")", "Expect ')' after parameters.")
        self.expect("{", "Expect '{' before function body.")
        body = Block(self.parse_block())
        return Function(Variable(name_tok.lexeme, name_tok), params, body)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.match("print"):
            return self.parse_print_stmt()
        if self.match("return"):
            return self.parse_return_stmt()
        if self.match("if"):
            return self.parse_if_stmt()
        if self.match("while"):
            return self.parse_while_stmt()
        if self.match("for"):
            return self.parse_for_stmt()
        if self.match("{"):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> list[Stmt]:
        """Declarations up to the closing '}'; the '{' is already consumed."""
        stmts: list[Stmt] = []
        while not self.at("}") and not self.is_at_end():
            stmts.append(self.parse_declaration())
        self.expect("}", "Expect '}' after block.")
        return stmts

    def parse_print_stmt(self) -> Print:
        keyword = self.previous()
        expr = self.parse_expr()
        self.expect(";", "Expect ';' after value.")
        return Print(expr, keyword)

    def parse_return_stmt(self) -> Return:
        keyword = self.previous()
        value: Expr = Literal(NIL)
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";", "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_if_stmt(self) -> If:
        keyword = self.previous()
        self.expect("(", "Expect '(' after 'if'.")
        cond = self.parse_expr()
        self.expect(")", "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.parse_stmt()
        return If(keyword, cond, then_branch, else_branch)

    def parse_while_stmt(self) -> While:
        keyword = self.previous()
        self.expect("(", "Expect '(' after 'while'.")
        cond = self.parse_expr()
        self.expect(")", "Expect ')' after condition.")
        body = self.parse_stmt()
        return While(keyword, cond, body)

    def parse_for_stmt(self) -> Stmt:
        """for ( init ; cond ; incr ) body, desugared into a while loop."""
        keyword = self.previous()
        self.expect("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.match("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        cond: Expr = Literal(TRUE)
        if not self.at(";"):
            cond = self.parse_expr()
        self.expect(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(")"):
            increment = self.parse_expr()
        self.expect(")", "Expect ')' after for clauses.")

        body = self.parse_stmt()
        if increment is not None:
            body = Block([body, Expression(increment)])
        loop: Stmt = While(keyword, cond, body)
        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def parse_expr_stmt(self) -> Expression:
        expr = self.parse_expr()
        self.expect(";", "Expect ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = LogicOr ( '=' Assignment )?"""
        expr = self.parse_or()
        if self.at("="):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr, value)
            self.warn(equals, "Invalid assignment target.")
            return value
        return expr

    def parse_or(self) -> Expr:
        """LogicOr = LogicAnd ( 'or' Assignment )?"""
        left = self.parse_and()
        if self.at("or"):
            op = self.advance()
            return Logical(left, op, self.parse_assignment())
        return left

    def parse_and(self) -> Expr:
        """LogicAnd = Equality ( 'and' Assignment )?"""
        left = self.parse_equality()
        if self.at("and"):
            op = self.advance()
            return Logical(left, op, self.parse_assignment())
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '==' | '!=' ) Comparison )*"""
        left = self.parse_comparison()
        while self.current().type in EQUALITY_OPS:
            op = self.advance()
            left = Binary(left, op, self.parse_comparison())
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.current().type in COMPARE_OPS:
            op = self.advance()
            left = Binary(left, op, self.parse_term())
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '+' | '-' ) Factor )*"""
        left = self.parse_factor()
        while self.current().type in TERM_OPS:
            op = self.advance()
            left = Binary(left, op, self.parse_factor())
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '*' | '/' ) Unary )*"""
        left = self.parse_unary()
        while self.current().type in FACTOR_OPS:
            op = self.advance()
            left = Binary(left, op, self.parse_unary())
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' | '++' | '--' ) Unary | Postfix"""
        if self.at("!") or self.at("-"):
            tok = self.advance()
            op = OP_NOT if tok.type == "!" else OP_NEGATE
            return Unary(op, self.parse_unary(), tok)
        if self.at("++") or self.at("--"):
            tok = self.advance()
            op = OP_INCREMENT if tok.type == "++" else OP_DECREMENT
            return self._step(op, self.parse_unary(), tok)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        """Postfix = Call ( '++' | '--' )?"""
        expr = self.parse_call()
        if self.at("++") or self.at("--"):
            tok = self.advance()
            op = OP_POSTFIX_INCREMENT if tok.type == "++" else OP_POSTFIX_DECREMENT
            return self._step(op, expr, tok)
        return expr

    def _step(self, op: str, operand: Expr, tok: Token) -> Expr:
        """Desugar an increment or decrement into an assignment."""
        if not isinstance(operand, Variable):
            kind = "increment" if tok.type == "++" else "decrement"
            self.warn(tok, "Invalid " + kind + " target.")
            return operand
        return Assign(operand, Unary(op, operand, tok))

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' ArgList ')' )*"""
        expr = self.parse_primary()
        while self.match("("):
            args = self.parse_arg_list()
            paren = self.expect(")", "Expect ')' after arguments.")
            expr = Call(expr, paren, args)
        return expr

    def parse_arg_list(self) -> list[Expr]:
        """ArgList = ( Expr ( ',' Expr )* )?, capped at MAX_ARGS."""
        args: list[Expr] = []
        if self.at(")"):
            return args
        overflowed = False
        while True:
            if len(args) == MAX_ARGS and not overflowed:
                self.warn(self.current(), "Can't have more than 255 arguments.")
                overflowed = True
            arg = self.parse_expr()
            if not overflowed:
                args.append(arg)
            if not self.match(","):
                break
        return args

    def parse_primary(self) -> Expr:
        tok = self.current()
        if tok.type == TK_NUMBER:
            self.advance()
            return Literal(VNumber(float(tok.literal)))
        if tok.type == TK_STRING:
            self.advance()
            return Literal(VString(str(tok.literal)))
        if tok.type == "true":
            self.advance()
            return Literal(TRUE)
        if tok.type == "false":
            self.advance()
            return Literal(FALSE)
        if tok.type == "nil":
            self.advance()
            return Literal(NIL)
        if tok.type == "(":
            self.advance()
            expr = self.parse_expr()
            self.expect(")", "Expect ')' after expression.")
            return Grouping(expr)
        if tok.type == TK_IDENT:
            self.advance()
            return Variable(tok.lexeme, tok)
        raise self.error(tok, "Expect expression.")


def parse(tokens: list[Token], sink: Sink | None = None) -> list[Stmt]:
    """Parse a token list into statements. Returns [] after any parse error."""
    return Parser(tokens, sink).parse_program()
