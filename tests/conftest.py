import pathlib

import pytest

from girwrap.wrapper import Wrapper

HEADER = """<?xml version="1.0"?>
<repository version="1.2"
            xmlns="http://www.gtk.org/introspection/core/1.0"
            xmlns:c="http://www.gtk.org/introspection/c/1.0"
            xmlns:glib="http://www.gtk.org/introspection/glib/1.0">
"""

GOBJECT_GIR = (
    HEADER
    + """
  <package name="gobject-2.0"/>
  <c:include name="glib-object.h"/>
  <namespace name="GObject" version="2.0" shared-library="libgobject-2.0.so.0"
             c:identifier-prefixes="G" c:symbol-prefixes="g">
    <record name="TypeInstance" c:type="GTypeInstance">
      <field name="g_class" readable="0" private="1">
        <type name="gpointer" c:type="GTypeClass*"/>
      </field>
    </record>
    <record name="TypeClass" c:type="GTypeClass">
      <field name="g_type" readable="0" private="1">
        <type name="GType" c:type="GType"/>
      </field>
    </record>
    <class name="Object" c:type="GObject" glib:type-name="GObject"
           glib:get-type="g_object_get_type" glib:type-struct="ObjectClass">
      <doc xml:space="preserve">The base object type.</doc>
      <field name="g_type_instance">
        <type name="TypeInstance" c:type="GTypeInstance"/>
      </field>
      <field name="ref_count" readable="0" private="1">
        <type name="guint" c:type="guint"/>
      </field>
      <field name="qdata" readable="0" private="1">
        <type name="GLib.Data" c:type="GData*"/>
      </field>
      <method name="get_data" c:identifier="g_object_get_data">
        <return-value transfer-ownership="none" nullable="1">
          <type name="gpointer" c:type="gpointer"/>
        </return-value>
        <parameters>
          <instance-parameter name="object" transfer-ownership="none">
            <type name="Object" c:type="GObject*"/>
          </instance-parameter>
          <parameter name="key" transfer-ownership="none">
            <type name="utf8" c:type="const gchar*"/>
          </parameter>
        </parameters>
      </method>
      <method name="notify" c:identifier="g_object_notify">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <instance-parameter name="object" transfer-ownership="none">
            <type name="Object" c:type="GObject*"/>
          </instance-parameter>
          <parameter name="property_name" transfer-ownership="none">
            <type name="utf8" c:type="const gchar*"/>
          </parameter>
        </parameters>
      </method>
      <glib:signal name="notify" when="first" no-recurse="1" detailed="1" action="1" no-hooks="1">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <parameter name="pspec" transfer-ownership="none">
            <type name="ParamSpec"/>
          </parameter>
        </parameters>
      </glib:signal>
    </class>
    <record name="ObjectClass" c:type="GObjectClass" glib:is-gtype-struct-for="Object">
      <field name="g_type_class">
        <type name="TypeClass" c:type="GTypeClass"/>
      </field>
    </record>
  </namespace>
</repository>
"""
)

DEMO_GIR = (
    HEADER
    + """
  <include name="GObject" version="2.0"/>
  <package name="demo-1.0"/>
  <c:include name="demo.h"/>
  <namespace name="Demo" version="1.0" shared-library="libdemo-1.0.so.0"
             c:identifier-prefixes="Demo" c:symbol-prefixes="demo">
    <alias name="Size" c:type="DemoSize">
      <type name="gint" c:type="int"/>
    </alias>
    <constant name="MAJOR_VERSION" value="1" c:type="DEMO_MAJOR_VERSION">
      <type name="gint" c:type="gint"/>
    </constant>
    <constant name="NAME" value="demo" c:type="DEMO_NAME">
      <type name="utf8" c:type="gchar*"/>
    </constant>
    <constant name="SCALE" value="1.5" c:type="DEMO_SCALE">
      <type name="gdouble" c:type="gdouble"/>
    </constant>
    <enumeration name="Colorspace" c:type="DemoColorspace">
      <doc xml:space="preserve">Color spaces.</doc>
      <member name="rgb" value="0" c:identifier="DEMO_COLORSPACE_RGB"/>
      <member name="cmyk" value="1" c:identifier="DEMO_COLORSPACE_CMYK"/>
    </enumeration>
    <bitfield name="Flags" c:type="DemoFlags">
      <member name="none" value="0" c:identifier="DEMO_FLAGS_NONE"/>
      <member name="read" value="1" c:identifier="DEMO_FLAGS_READ"/>
      <member name="write" value="2" c:identifier="DEMO_FLAGS_WRITE"/>
    </bitfield>
    <callback name="DestroyNotify" c:type="DemoDestroyNotify">
      <return-value transfer-ownership="none">
        <type name="none" c:type="void"/>
      </return-value>
      <parameters>
        <parameter name="data" transfer-ownership="none">
          <type name="gpointer" c:type="gpointer"/>
        </parameter>
      </parameters>
    </callback>
    <record name="Rect" c:type="DemoRect">
      <field name="origin" writable="1">
        <type name="Point" c:type="DemoPoint"/>
      </field>
      <field name="visible" writable="1" bits="1">
        <type name="guint" c:type="guint"/>
      </field>
      <field name="dirty" writable="1" bits="1">
        <type name="gboolean" c:type="gboolean"/>
      </field>
      <union name="data" c:type="DemoRectData">
        <field name="i" writable="1">
          <type name="gint" c:type="gint"/>
        </field>
        <field name="d" writable="1">
          <type name="gdouble" c:type="gdouble"/>
        </field>
      </union>
      <field name="notify" writable="1">
        <callback name="notify">
          <return-value transfer-ownership="none">
            <type name="none" c:type="void"/>
          </return-value>
          <parameters>
            <parameter name="rect" transfer-ownership="none">
              <type name="Rect" c:type="DemoRect*"/>
            </parameter>
          </parameters>
        </callback>
      </field>
      <field name="name" writable="1">
        <type name="utf8" c:type="gchar*"/>
      </field>
    </record>
    <record name="Point" c:type="DemoPoint">
      <field name="x" writable="1">
        <type name="gint" c:type="int"/>
      </field>
      <field name="y" writable="1">
        <type name="gint" c:type="int"/>
      </field>
    </record>
    <record name="List" c:type="DemoList">
      <field name="data" writable="1">
        <type name="gpointer" c:type="gpointer"/>
      </field>
      <field name="next" writable="1">
        <type name="List" c:type="DemoList*"/>
      </field>
      <function name="length" c:identifier="demo_list_length">
        <return-value transfer-ownership="none">
          <type name="guint" c:type="guint"/>
        </return-value>
        <parameters>
          <parameter name="list" transfer-ownership="none">
            <type name="List" c:type="DemoList*"/>
          </parameter>
        </parameters>
      </function>
      <function name="free" c:identifier="demo_list_free">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <parameter name="list" transfer-ownership="none">
            <type name="List" c:type="DemoList*"/>
          </parameter>
        </parameters>
      </function>
    </record>
    <interface name="Drawable" c:type="DemoDrawable" glib:type-name="DemoDrawable"
               glib:get-type="demo_drawable_get_type">
      <prerequisite name="GObject.Object"/>
      <method name="draw" c:identifier="demo_drawable_draw">
        <return-value transfer-ownership="none">
          <type name="gboolean" c:type="gboolean"/>
        </return-value>
        <parameters>
          <instance-parameter name="drawable" transfer-ownership="none">
            <type name="Drawable" c:type="DemoDrawable*"/>
          </instance-parameter>
        </parameters>
      </method>
    </interface>
    <class name="Image" c:type="DemoImage" parent="GObject.Object" version="1.2"
           glib:type-name="DemoImage" glib:get-type="demo_image_get_type"
           glib:type-struct="ImageClass">
      <doc xml:space="preserve">An image.</doc>
      <implements name="Drawable"/>
      <constructor name="new" c:identifier="demo_image_new">
        <return-value transfer-ownership="full">
          <type name="Image" c:type="DemoImage*"/>
        </return-value>
        <parameters>
          <parameter name="width" transfer-ownership="none">
            <type name="gint" c:type="int"/>
          </parameter>
          <parameter name="height" transfer-ownership="none">
            <type name="gint" c:type="int"/>
          </parameter>
        </parameters>
      </constructor>
      <constructor name="new_from_file" c:identifier="demo_image_new_from_file" throws="1">
        <doc xml:space="preserve">Loads an image.</doc>
        <return-value transfer-ownership="full">
          <type name="Image" c:type="DemoImage*"/>
        </return-value>
        <parameters>
          <parameter name="filename" transfer-ownership="none">
            <doc xml:space="preserve">the file to load</doc>
            <type name="filename" c:type="const char*"/>
          </parameter>
        </parameters>
      </constructor>
      <virtual-method name="get_width" invoker="get_width">
        <return-value transfer-ownership="none">
          <type name="gint" c:type="int"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </virtual-method>
      <method name="get_width" c:identifier="demo_image_get_width">
        <return-value transfer-ownership="none">
          <type name="gint" c:type="int"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="get_colorspace" c:identifier="demo_image_get_colorspace">
        <return-value transfer-ownership="none">
          <type name="Colorspace" c:type="DemoColorspace"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="get_name" c:identifier="demo_image_get_name">
        <return-value transfer-ownership="full">
          <type name="utf8" c:type="char*"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="copy" c:identifier="demo_image_copy">
        <return-value transfer-ownership="full">
          <type name="Image" c:type="DemoImage*"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="get_bounds" c:identifier="demo_image_get_bounds">
        <return-value transfer-ownership="none">
          <type name="Rect" c:type="DemoRect*"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="get_size" c:identifier="demo_image_get_size">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="width" direction="out" caller-allocates="0" transfer-ownership="full">
            <type name="gint" c:type="int*"/>
          </parameter>
          <parameter name="height" direction="out" caller-allocates="0" transfer-ownership="full">
            <type name="gint" c:type="int*"/>
          </parameter>
        </parameters>
      </method>
      <method name="get_origin" c:identifier="demo_image_get_origin">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="origin" direction="out" caller-allocates="1" transfer-ownership="none">
            <type name="Point" c:type="DemoPoint*"/>
          </parameter>
        </parameters>
      </method>
      <method name="scale" c:identifier="demo_image_scale">
        <return-value transfer-ownership="none" nullable="1">
          <type name="Image" c:type="DemoImage*"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="other" transfer-ownership="none" nullable="1">
            <type name="Image" c:type="DemoImage*"/>
          </parameter>
          <parameter name="factor" transfer-ownership="none">
            <type name="gdouble" c:type="double"/>
          </parameter>
          <parameter name="flags" transfer-ownership="none">
            <type name="Flags" c:type="DemoFlags"/>
          </parameter>
        </parameters>
      </method>
      <method name="save" c:identifier="demo_image_save" throws="1">
        <return-value transfer-ownership="none">
          <type name="gboolean" c:type="gboolean"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="filename" transfer-ownership="none">
            <type name="filename" c:type="const char*"/>
          </parameter>
        </parameters>
      </method>
      <method name="set_tags" c:identifier="demo_image_set_tags">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="tags" transfer-ownership="none">
            <array c:type="const char**">
              <type name="utf8"/>
            </array>
          </parameter>
        </parameters>
      </method>
      <method name="printf" c:identifier="demo_image_printf" introspectable="0">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="Image" c:type="DemoImage*"/>
          </instance-parameter>
          <parameter name="format" transfer-ownership="none">
            <type name="utf8" c:type="const char*"/>
          </parameter>
          <parameter name="..." transfer-ownership="none">
            <varargs/>
          </parameter>
        </parameters>
      </method>
      <property name="width" writable="1" transfer-ownership="none">
        <type name="gint" c:type="gint"/>
      </property>
      <glib:signal name="size-changed" when="last">
        <return-value transfer-ownership="none">
          <type name="none" c:type="void"/>
        </return-value>
        <parameters>
          <parameter name="width" transfer-ownership="none">
            <type name="gint" c:type="gint"/>
          </parameter>
          <parameter name="height" transfer-ownership="none">
            <type name="gint" c:type="gint"/>
          </parameter>
        </parameters>
      </glib:signal>
      <field name="parent_instance">
        <type name="GObject.Object" c:type="GObject"/>
      </field>
      <field name="priv" readable="0" private="1">
        <type name="gpointer" c:type="gpointer"/>
      </field>
    </class>
    <record name="ImageClass" c:type="DemoImageClass" glib:is-gtype-struct-for="Image">
      <field name="parent_class">
        <type name="GObject.ObjectClass" c:type="GObjectClass"/>
      </field>
      <field name="get_width">
        <callback name="get_width">
          <return-value transfer-ownership="none">
            <type name="gint" c:type="int"/>
          </return-value>
          <parameters>
            <parameter name="image" transfer-ownership="none">
              <type name="Image" c:type="DemoImage*"/>
            </parameter>
          </parameters>
        </callback>
      </field>
    </record>
    <class name="AnimatedImage" c:type="DemoAnimatedImage" parent="Image"
           glib:type-name="DemoAnimatedImage" glib:get-type="demo_animated_image_get_type">
      <implements name="Drawable"/>
      <method name="get_width" c:identifier="demo_animated_image_get_width">
        <return-value transfer-ownership="none">
          <type name="gint" c:type="int"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="AnimatedImage" c:type="DemoAnimatedImage*"/>
          </instance-parameter>
        </parameters>
      </method>
      <method name="get_frame" c:identifier="demo_animated_image_get_frame">
        <return-value transfer-ownership="none" nullable="1">
          <type name="Image" c:type="DemoImage*"/>
        </return-value>
        <parameters>
          <instance-parameter name="image" transfer-ownership="none">
            <type name="AnimatedImage" c:type="DemoAnimatedImage*"/>
          </instance-parameter>
          <parameter name="index" transfer-ownership="none">
            <type name="guint" c:type="guint"/>
          </parameter>
        </parameters>
      </method>
    </class>
    <function name="init" c:identifier="demo_init">
      <return-value transfer-ownership="none">
        <type name="gboolean" c:type="gboolean"/>
      </return-value>
    </function>
    <function name="get_version_string" c:identifier="demo_get_version_string">
      <return-value transfer-ownership="none">
        <type name="utf8" c:type="const char*"/>
      </return-value>
    </function>
    <function name="image_get_default" c:identifier="demo_image_get_default">
      <return-value transfer-ownership="none">
        <type name="Image" c:type="DemoImage*"/>
      </return-value>
    </function>
    <function name="log" c:identifier="demo_log" introspectable="0">
      <return-value transfer-ownership="none">
        <type name="none" c:type="void"/>
      </return-value>
      <parameters>
        <parameter name="format" transfer-ownership="none">
          <type name="utf8" c:type="const char*"/>
        </parameter>
        <parameter name="..." transfer-ownership="none">
          <varargs/>
        </parameter>
      </parameters>
    </function>
  </namespace>
</repository>
"""
)


@pytest.fixture
def gir_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    d = tmp_path / "gir-1.0"
    d.mkdir()
    (d / "GObject-2.0.gir").write_text(GOBJECT_GIR, encoding="utf-8")
    (d / "Demo-1.0.gir").write_text(DEMO_GIR, encoding="utf-8")
    return d


@pytest.fixture
def wrapper(gir_dir: pathlib.Path) -> Wrapper:
    w = Wrapper([gir_dir])
    w.load_gir(gir_dir, "Demo", "1.0")
    return w


@pytest.fixture
def sources(wrapper: Wrapper):
    """relative posix path => source"""
    return {path.as_posix(): source for path, source in wrapper.emit().items()}
