"""Mocking policy rule for model specs: exercise the real model, mock only its collaborators."""

from typing import ClassVar

from rspec_style_linter.domain.entities import LabelKind, NodeKind, Severity, SpecNode
from rspec_style_linter.domain.rules import BodyScanner, Checkable, RuleContext, Violation
from rspec_style_linter.domain.tokens import Token, TokenKind


class ModelMockingRule(Checkable):
    """
    Rule avoid-unnecessary-mocking-in-model-specs.

    A top-level describe is a model spec when its subject is a constant and
    either the header carries `type: :model` or the file lives under a
    `models/` directory. Inside such a spec, stubbing or doubling the model
    class itself (directly, through `described_class`, or through
    `subject`) is reported once per call. Doubles of other classes are
    allowed.
    """

    id: str = "avoid-unnecessary-mocking-in-model-specs"
    description: str = "Model specs exercise the real model instead of mocking it."
    kinds: ClassVar[frozenset[NodeKind]] = frozenset({NodeKind.DESCRIBE})
    default_severity: Severity = Severity.WARNING

    # allow(User).to receive(...), expect(User).to have_received(...)
    TARGETED_CALLS: ClassVar[frozenset[str]] = frozenset({"allow", "expect"})
    MESSAGE_MATCHERS: ClassVar[frozenset[str]] = frozenset({
        "receive", "receive_messages", "receive_message_chain", "have_received",
    })
    # allow_any_instance_of(User), instance_double(User), stub_model(User)
    DOUBLE_CALLS: ClassVar[frozenset[str]] = frozenset({
        "allow_any_instance_of", "expect_any_instance_of", "instance_double",
        "class_double", "instance_spy", "class_spy", "mock_model", "stub_model",
    })
    # User.stub(...), User.any_instance.stub(...), User.should_receive(...)
    LEGACY_STUBS: ClassVar[frozenset[str]] = frozenset({
        "stub", "stub!", "stubs", "stub_chain", "should_receive", "should_not_receive",
        "expects", "any_instance", "unstub",
    })
    SUBJECT_ALIASES: ClassVar[frozenset[str]] = frozenset({"described_class", "subject"})

    def check(self, node: SpecNode, context: RuleContext) -> list[Violation]:
        if not context.is_top_level or not self.is_model_spec(node, context.tree.file):
            return []
        names = self.subject_names(node.label)
        violations: list[Violation] = []
        for descendant in node.walk():
            for token in self._mock_calls(descendant.body, names):
                violations.append(
                    context.violation_at_token(
                        self.id,
                        f"Model spec for '{node.label}' mocks the model itself via '{token.value}'; "
                        "exercise the real model and mock only external collaborators.",
                        token,
                    )
                )
        return violations

    def is_model_spec(self, node: SpecNode, file: str) -> bool:
        if node.label_kind is not LabelKind.CONSTANT:
            return False
        if BodyScanner.metadata_value(node, "type") == ":model":
            return True
        path = file.replace("\\", "/")
        return "/models/" in path or path.startswith("models/")

    def subject_names(self, label: str) -> frozenset[str]:
        """Spellings that refer to the model: its full path, its short name and the subject aliases."""
        short = label.split("::")[-1]
        return frozenset({label, short}) | self.SUBJECT_ALIASES

    def _mock_calls(self, body: tuple[Token, ...], names: frozenset[str]) -> list[Token]:
        found: list[Token] = []
        for index, tok in enumerate(body):
            if tok.kind is TokenKind.IDENT and BodyScanner.is_method_call(body, index):
                if tok.value in self.DOUBLE_CALLS:
                    if self._targets(BodyScanner.call_arguments(body, index), names):
                        found.append(tok)
                elif tok.value in self.TARGETED_CALLS:
                    args = BodyScanner.call_arguments(body, index)
                    tail = BodyScanner.statement_tail(body, index)
                    if self._targets(args, names) and any(
                        t.kind is TokenKind.IDENT and t.value in self.MESSAGE_MATCHERS for t in tail
                    ):
                        found.append(tok)
            elif tok.kind is TokenKind.DOT:
                nxt = BodyScanner.following(body, index)
                if nxt is not None and nxt.kind is TokenKind.IDENT and nxt.value in self.LEGACY_STUBS:
                    if self._receiver_targets(body, index, names):
                        found.append(nxt)
        return found

    @staticmethod
    def _targets(args: tuple[Token, ...], names: frozenset[str]) -> bool:
        """True if the first call argument is the model: `User`, `"User"`, `described_class`, `User.new`."""
        if not args:
            return False
        if len(args) == 1 and args[0].kind is TokenKind.STRING:
            return args[0].value in names
        path: list[str] = []
        for tok in args:
            if tok.kind in (TokenKind.CONSTANT, TokenKind.SCOPE) or (tok.kind is TokenKind.IDENT and not path):
                path.append(tok.value)
                continue
            break
        rest = args[len(path):]
        if "".join(path).lstrip(":") not in names:
            return False
        return not rest or (rest[0].kind is TokenKind.DOT and len(rest) > 1 and rest[1].value == "new")

    @staticmethod
    def _receiver_targets(body: tuple[Token, ...], dot_index: int, names: frozenset[str]) -> bool:
        """True if the receiver chain before `.stub` starts with the model (`User.any_instance.stub`)."""
        start = dot_index
        while start > 0 and body[start - 1].kind in (
            TokenKind.CONSTANT, TokenKind.SCOPE, TokenKind.DOT, TokenKind.IDENT,
        ):
            start -= 1
        chain = body[start:dot_index]
        if any(t.kind is TokenKind.IDENT and t.value in ModelMockingRule.LEGACY_STUBS for t in chain):
            return False  # already reported at the first stub in the chain
        path: list[str] = []
        for tok in chain:
            if tok.kind in (TokenKind.CONSTANT, TokenKind.SCOPE) or (tok.kind is TokenKind.IDENT and not path):
                path.append(tok.value)
            else:
                break
        return bool(path) and "".join(path).lstrip(":") in names
