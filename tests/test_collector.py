import textwrap

import pytest

from cargo_graph.collector import collect_functions, is_cfg_test_attribute, is_test_attribute
from cargo_graph.errors import SourceParseError
from cargo_graph.rust_parser import parse_source
from cargo_graph.statements import Expr, For, If, Loop, Match, While

ITEMS = textwrap.dedent("""
    fn helper() {}

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn it_works() {
            helper();
        }

        fn setup() {}
    }

    struct Counter {
        n: u32,
    }

    impl Counter {
        /// Advance by one.
        fn tick(&mut self) {
            self.n += 1;
        }
    }

    trait Speak {
        fn speak(&self);

        fn shout(&self) {
            self.speak();
        }
    }

    #[tokio::test]
    async fn async_case() {}
""")

CONTROL = textwrap.dedent("""
    fn classify(n: i32) -> i32 {
        let x = n * 2;
        if n < 0 {
            neg();
        } else if n == 0 {
            zero();
        } else {
            pos();
        }
        while x > 0 {
            step();
        }
        for i in 0..n {
            work(i);
        }
        loop {
            break;
        }
        match n {
            0 => zero(),
            _ => {
                other();
            }
        }
        x
    }
""")


def collect(source):
    return collect_functions(parse_source(source))


def test_collects_functions_in_source_order():
    functions = collect(ITEMS)
    assert [(f.name, f.is_test) for f in functions] == [
        ("helper", False),
        ("it_works", True),
        ("setup", True),
        ("Counter::tick", False),
        ("Speak::shout", False),
        ("async_case", True),
    ]


def test_function_line_numbers():
    functions = collect(ITEMS)
    assert functions[0].line == 2


def test_lowers_control_flow():
    (func,) = collect(CONTROL)
    body = func.body
    assert [type(s) for s in body] == [Expr, If, While, For, Loop, Match, Expr]

    assert body[0].text.startswith("let x = n * 2")

    outer = body[1]
    assert outer.condition == "n < 0"
    assert outer.then_body == (Expr("neg()"),)
    assert isinstance(outer.orelse, If)
    assert outer.orelse.condition == "n == 0"
    assert outer.orelse.then_body == (Expr("zero()"),)
    assert outer.orelse.orelse == (Expr("pos()"),)

    assert body[2].condition == "x > 0"
    assert body[2].body == (Expr("step()"),)

    assert (body[3].pattern, body[3].iterable) == ("i", "0..n")
    assert body[3].body == (Expr("work(i)"),)

    assert body[4].body == (Expr("break"),)

    match = body[5]
    assert match.scrutinee == "n"
    assert [arm.pattern for arm in match.arms] == ["0", "_"]
    assert match.arms[0].body == (Expr("zero()"),)
    assert match.arms[1].body == (Expr("other()"),)

    assert body[6] == Expr("x")


def test_if_without_else_and_empty_body():
    (func,) = collect("fn f(a: bool) {\n    if a {}\n}\n")
    (stmt,) = func.body
    assert isinstance(stmt, If)
    assert stmt.then_body == ()
    assert stmt.orelse is None


def test_comments_are_skipped():
    (func,) = collect("fn f() {\n    // note\n    a(); /* more */\n    b();\n}\n")
    assert func.body == (Expr("a()"), Expr("b()"))


def test_nested_functions_follow_their_parent():
    functions = collect("fn outer() {\n    fn inner() { a(); }\n    inner();\n}\n")
    assert [f.name for f in functions] == ["outer", "inner"]


def test_syntax_error_raises():
    with pytest.raises(SourceParseError, match="line 1"):
        parse_source("fn broken( {", path="broken.rs")


@pytest.mark.parametrize("attr,expected", [
    ("test", True),
    ("tokio::test", True),
    ("tokio::test(flavor = \"multi_thread\")", True),
    ("derive(Debug)", False),
    ("cfg(test)", False),
    ("testing", False),
])
def test_is_test_attribute(attr, expected):
    assert is_test_attribute(attr) is expected


def test_is_cfg_test_attribute():
    assert is_cfg_test_attribute("cfg(test)")
    assert is_cfg_test_attribute("cfg( test )")
    assert not is_cfg_test_attribute("cfg(feature = \"x\")")


def test_syntax_error_points_at_the_broken_item():
    source = "fn ok() {}\n\nfn broken( {\n"
    with pytest.raises(SourceParseError, match="broken.rs: syntax error at line 3"):
        parse_source(source, path="broken.rs")
