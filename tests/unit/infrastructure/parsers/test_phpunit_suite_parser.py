"""Unit tests for PhpUnitSuiteParser."""

import unittest

from suite_policy_linter.domain.entities import HookType, ScopeKind, SuiteLanguage
from suite_policy_linter.domain.errors import ParseError
from suite_policy_linter.infrastructure.parsers.phpunit_suite import PhpUnitSuiteParser

CART_TEST = """<?php

namespace App\\Tests;

use PHPUnit\\Framework\\TestCase;

final class CartTest extends TestCase
{
    protected function setUp(): void
    {
        $this->cart = new Cart();
        $this->assertEmpty($this->cart->items());
    }

    public function testAddsItem(): void
    {
        $this->cart->add('apple');
        $this->assertCount(1, $this->cart->items());
    }

    /**
     * @test
     */
    public function it_removes_items(): void
    {
        self::assertTrue($this->cart->remove('apple'));
    }

    #[Test]
    #[Group('extra')]
    public function removesUnknownItems(): void
    {
        foreach (['x', 'y'] as $name) {
            $this->assertFalse($this->cart->remove($name));
        }
    }

    private function helper(): void
    {
        $this->assertTrue(true);
    }
}
"""

ABSTRACT_TEST = """<?php

abstract class BaseApiTestCase extends TestCase
{
    abstract public function testContract(): void;

    /**
     * @testdox Pings the API
     */
    public function checksPing(): void
    {
        $this->assertSame('pong', $this->client->ping());
    }

    public function testPing_extra(): void
    {
        $this->assertSame('pong', $this->client->ping());
    }
}

class Helper
{
    public function testNothing(): void
    {
    }
}
"""


DEPENDS_TEST = """<?php

final class SearchTest extends TestCase
{
    public function testRanksResults(): void
    {
        $this->assertSame([1, 2], rank([2, 1]));
    }

    /**
     * @group extra
     * @depends testRanksResults
     */
    public function testRanksTies(): void
    {
        $this->assertSame([1, 1], rank([1, 1]));
    }

    #[Group('extra')]
    #[Depends('SearchTest::testRanksResults')]
    public function testRanksEmpty(): void
    {
        $this->assertSame([], rank([]));
    }
}
"""


def _parse(source: str):
    return PhpUnitSuiteParser().parse(source, "tests/CartTest.php")


class TestPhpUnitClassification(unittest.TestCase):
    def test_hooks_and_tests(self) -> None:
        suite = _parse(CART_TEST)
        self.assertEqual(suite.language, SuiteLanguage.PHP)
        self.assertEqual(
            [(tc.name, tc.hook) for tc in suite.test_cases],
            [
                ("CartTest.setUp", HookType.SETUP),
                ("CartTest.testAddsItem", HookType.TEST),
                ("CartTest.it_removes_items", HookType.TEST),
                ("CartTest.removesUnknownItems", HookType.EXTRA),
            ],
        )

    def test_locations_point_at_the_method_name(self) -> None:
        setup, adds = _parse(CART_TEST).test_cases[:2]
        self.assertEqual((setup.location.line, setup.location.column), (9, 24))
        self.assertEqual((adds.location.line, adds.location.column), (15, 21))

    def test_assertions_in_hook_and_tests(self) -> None:
        cases = _parse(CART_TEST).test_cases
        setup = cases[0]
        self.assertEqual(setup.hook_kind, "setUp")
        self.assertEqual(
            [a.expression for a in setup.assertions],
            ["$this->assertEmpty($this->cart->items())"],
        )
        self.assertEqual(setup.assertions[0].location.line, 12)
        self.assertEqual(len(cases[1].assertions), 1)
        self.assertEqual(cases[2].assertions[0].expression, "self::assertTrue($this->cart->remove('apple'))")

    def test_assertion_inside_foreach_is_in_a_loop(self) -> None:
        extra = _parse(CART_TEST).test_cases[3]
        self.assertEqual(extra.base_name, "CartTest.removesUnknownItems")
        self.assertEqual([a.scopes for a in extra.assertions], [(ScopeKind.LOOP,)])

    def test_extra_suffix_and_non_test_methods(self) -> None:
        suite = _parse(ABSTRACT_TEST)
        self.assertEqual(
            [(tc.name, tc.hook, tc.base_name) for tc in suite.test_cases],
            [("BaseApiTestCase.testPing_extra", HookType.EXTRA, "BaseApiTestCase.testPing")],
        )

    def test_bodiless_test_method_is_skipped(self) -> None:
        suite = _parse(ABSTRACT_TEST)
        self.assertEqual([e.name for e in suite.skipped], ["BaseApiTestCase.testContract"])
        self.assertEqual(suite.skipped[0].line, 5)

    def test_non_test_class_is_ignored(self) -> None:
        suite = _parse("<?php\nclass Helper { public function testX() { $this->assertTrue(true); } }\n")
        self.assertEqual(suite.test_cases, ())

    def test_unclosed_class_raises_parse_error(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            _parse("<?php\nclass BrokenTest extends TestCase {\n    public function testX() {\n")
        self.assertEqual(ctx.exception.path, "tests/CartTest.php")

    def test_extra_group_pairs_with_its_depends_target(self) -> None:
        suite = _parse(DEPENDS_TEST)
        self.assertEqual(
            [(tc.name, tc.hook, tc.base_name) for tc in suite.test_cases],
            [
                ("SearchTest.testRanksResults", HookType.TEST, "SearchTest.testRanksResults"),
                ("SearchTest.testRanksTies", HookType.EXTRA, "SearchTest.testRanksResults"),
                ("SearchTest.testRanksEmpty", HookType.EXTRA, "SearchTest.testRanksResults"),
            ],
        )
