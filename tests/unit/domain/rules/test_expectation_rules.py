"""Tests for expectation rules."""

from rspec_style_linter.domain.entities import Severity
from rspec_style_linter.domain.rules.expectations import ExpectSyntaxRule, SingleExpectationRule
from rspec_style_linter.domain.services.tokenizer import Tokenizer


def body_of(source: str):
    return Tokenizer(source).tokenize().tokens


class TestSingleExpectationRule:
    """Test SingleExpectationRule."""

    def test_flags_two_expectations_once(self, lint) -> None:
        violations = lint("""\
            describe 'ResourcesController' do
              it 'creates a resource' do
                expect(response).to respond_with_content_type(:json)
                expect(response).to assign_to(:resource)
                expect(response.status).to eq(201)
              end
            end
        """, SingleExpectationRule())
        assert len(violations) == 1
        assert violations[0].location.line == 2
        assert violations[0].severity is Severity.WARNING
        assert "3 expectations" in violations[0].message

    def test_one_expectation_is_fine(self, lint) -> None:
        assert lint("""\
            it { is_expected.to respond_with_content_type(:json) }
            it 'assigns' do
              expect { post :create }.to change(Resource, :count).by(1)
            end
        """, SingleExpectationRule()) == []

    def test_aggregate_failures_metadata_is_still_flagged(self, lint) -> None:
        violations = lint("""\
            it 'renders', :aggregate_failures do
              expect(page).to have_content('a')
              expect(page).to have_content('b')
            end
            it 'renders again', aggregate_failures: true do
              expect(page).to have_content('a')
              expect(page).to have_content('b')
            end
        """, SingleExpectationRule())
        assert [v.location.line for v in violations] == [1, 5]

    def test_aggregate_failures_block_is_still_flagged(self, lint) -> None:
        violations = lint("""\
            it 'renders' do
              aggregate_failures do
                expect(page).to have_content('a')
                expect(page).to have_content('b')
              end
            end
        """, SingleExpectationRule())
        assert len(violations) == 1
        assert "makes 2 expectations" in violations[0].message

    def test_counts_expect_any_instance_of(self, lint) -> None:
        violations = lint("""\
            it 'notifies' do
              expect_any_instance_of(Mailer).to receive(:deliver)
              expect(user.save).to be true
            end
        """, SingleExpectationRule())
        assert len(violations) == 1

    def test_counts_legacy_should(self) -> None:
        rule = SingleExpectationRule()
        assert rule.count_expectations(body_of("a.should == 1\nb.should_not be_nil\n")) == 2

    def test_expect_method_on_object_is_not_counted(self) -> None:
        rule = SingleExpectationRule()
        assert rule.count_expectations(body_of("mock.expect(:x)\nexpect(y).to eq(1)\n")) == 1

    def test_expectations_in_nested_groups_are_separate(self, lint) -> None:
        assert lint("""\
            describe 'x' do
              it 'a' do
                expect(1).to eq(1)
              end
              it 'b' do
                expect(2).to eq(2)
              end
            end
        """, SingleExpectationRule()) == []


class TestExpectSyntaxRule:
    """Test ExpectSyntaxRule."""

    def test_flags_first_should_at_the_token(self, lint) -> None:
        violations = lint("""\
            it 'does not change timings' do
              consumption.occur_at.should == valid.occur_at
              consumption.other.should_not be_nil
            end
        """, ExpectSyntaxRule())
        assert len(violations) == 1
        assert (violations[0].location.line, violations[0].location.column) == (2, 24)
        assert "expect(...).to" in violations[0].message

    def test_should_not_suggests_not_to(self, lint) -> None:
        violations = lint("it 'x' do\n  user.should_not be_admin\nend\n", ExpectSyntaxRule())
        assert "not_to" in violations[0].message

    def test_expect_syntax_is_fine(self, lint) -> None:
        assert lint("it 'x' do\n  expect(user).not_to be_admin\nend\n", ExpectSyntaxRule()) == []
